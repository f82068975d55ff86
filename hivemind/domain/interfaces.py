from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List
from .models import CollectionInfo, Distance, Point, QueryResult, Vector


class EmbeddingProvider(ABC):
    """Port for embedding provider (e.g., OpenAI)."""

    @abstractmethod
    def create_embedding(self, model: str, text: str, encoding: str = "float") -> List[List[float]]:
        """Embed one input and return every result entry the provider produced.

        Raises:
            ProviderUnavailable: Provider unreachable, timed out or rate limited.
            EmbeddingFailure: Provider rejected the request.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release underlying connections."""


class VectorIndex(ABC):
    """Port for vector storage (e.g., Qdrant)."""

    @abstractmethod
    def get_collection(self, name: str) -> CollectionInfo:
        """Describe a collection; raises CollectionNotFound when it does not exist."""
        raise NotImplementedError

    @abstractmethod
    def create_collection(self, name: str, vector_size: int, distance: Distance) -> None:
        """Create a collection; raises CollectionAlreadyExists on a duplicate."""
        raise NotImplementedError

    @abstractmethod
    def create_payload_index(self, name: str, field: str, schema_type: str, wait: bool = True) -> None:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, name: str, points: List[Point], wait: bool = True) -> None:
        """Upsert points; with ``wait`` the call returns only once the write is committed."""
        raise NotImplementedError

    @abstractmethod
    def search(self, name: str, vector: Vector, limit: int = 5, with_payload: bool = True) -> List[QueryResult]:
        """Search similar points, ordered by descending score."""
        raise NotImplementedError

    def close(self) -> None:
        """Release underlying connections."""
