from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class Distance(str, Enum):
    """Distance metrics understood by the index (Qdrant spelling)."""

    COSINE = "Cosine"
    DOT = "Dot"
    EUCLID = "Euclid"

    @classmethod
    def parse(cls, value: str) -> "Distance":
        """Parse a case-insensitive metric name; ``euclidean`` is accepted for ``Euclid``."""
        s = str(value or "").strip().lower()
        aliases = {"cosine": cls.COSINE, "dot": cls.DOT, "euclid": cls.EUCLID, "euclidean": cls.EUCLID}
        if s not in aliases:
            raise ValueError(f"Unknown distance metric: {value!r}")
        return aliases[s]


@dataclass(frozen=True)
class CollectionSpec:
    """Declared shape of the target collection.

    Fields:
        name: Collection name, unique within the index.
        vector_size: Dimensionality every stored and query vector must have.
        distance: Similarity metric fixed at creation.
        payload_indexes: Payload field name -> index schema type.
    """
    name: str
    vector_size: int
    distance: Distance = Distance.COSINE
    payload_indexes: Dict[str, str] = field(default_factory=lambda: {"text": "keyword"})


@dataclass(frozen=True)
class CollectionInfo:
    """What the index reports about an existing collection.

    Fields left as ``None`` could not be determined from the index response.
    """
    name: str
    vector_size: Optional[int] = None
    distance: Optional[str] = None
    payload_schema: Dict[str, str] = field(default_factory=dict)
    points_count: Optional[int] = None
    named_vectors: bool = False


@dataclass(frozen=True)
class Vector:
    """Embedding vector with explicit dimension.

    Fields:
        values: The numeric embedding.
        dim: Dimension; validated by the embedding gateway.
    """
    values: List[float]
    dim: int


@dataclass(frozen=True)
class Point:
    """A point to upsert into the vector store.

    Fields:
        id: Qdrant-valid ID (UUID string).
        vector: Embedding vector (default unnamed vector).
        payload: Stored payload (``text`` and ``created_at``).
    """
    id: str
    vector: Vector
    payload: Dict[str, object]


@dataclass(frozen=True)
class QueryResult:
    """Vector search match returned by the store.

    Fields:
        id: Point ID.
        score: Similarity score (higher is more similar).
        payload: Returned payload.
    """
    id: str
    score: float
    payload: Dict[str, object]


@dataclass(frozen=True)
class Document:
    """One ingested unit, as written to the index."""
    id: str
    text: str
    embedding: Vector
    created_at: datetime


@dataclass(frozen=True)
class SearchResult:
    score: float
    text: str
    id: str = ""

    def as_dict(self) -> Dict[str, object]:
        return {"score": self.score, "text": self.text}
