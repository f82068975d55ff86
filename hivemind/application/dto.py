from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..domain.errors import InvalidInput
from ..domain.models import SearchResult

DEFAULT_SEARCH_LIMIT = 5


def require_text(value: Any) -> str:
    """Return ``value`` if it is a non-blank string; raise InvalidInput otherwise."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput("text must be a non-empty string")
    return value


def require_limit(value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidInput("limit must be a positive integer")
    return value


@dataclass(frozen=True)
class IngestRequest:
    text: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "IngestRequest":
        if not isinstance(payload, Mapping):
            raise InvalidInput("request body must be an object")
        return cls(text=require_text(payload.get("text")))


@dataclass(frozen=True)
class SearchRequest:
    text: str
    limit: int = DEFAULT_SEARCH_LIMIT

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SearchRequest":
        if not isinstance(payload, Mapping):
            raise InvalidInput("request body must be an object")
        limit = payload.get("limit")
        return cls(
            text=require_text(payload.get("text")),
            limit=DEFAULT_SEARCH_LIMIT if limit is None else require_limit(limit),
        )


@dataclass(frozen=True)
class IngestResponse:
    id: str
    success: bool = True

    def as_dict(self) -> Dict[str, object]:
        return {"success": self.success, "id": self.id}


@dataclass(frozen=True)
class SearchOutcome:
    """Search results plus the ids of hits dropped for lacking a ``text`` payload."""
    results: List[SearchResult]
    malformed_ids: List[str] = field(default_factory=list)
