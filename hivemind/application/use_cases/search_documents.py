from __future__ import annotations

from typing import List

from ..dto import DEFAULT_SEARCH_LIMIT, SearchOutcome, SearchRequest, require_limit, require_text
from ..embedding_gateway import EmbeddingGateway
from .ensure_collection import CollectionManager
from ...domain.errors import QueryFailure, VectorStoreError
from ...domain.interfaces import VectorIndex
from ...domain.models import SearchResult
from ...infrastructure.logging import get_logger

logger = get_logger("hivemind.application.search")


class SearchService:
    """Use-case: embed query string and search the store."""

    def __init__(self, collections: CollectionManager, embeddings: EmbeddingGateway, store: VectorIndex) -> None:
        self._collections = collections
        self._emb = embeddings
        self._store = store

    def search_with_report(self, text: str, limit: int = DEFAULT_SEARCH_LIMIT) -> SearchOutcome:
        """Search and report hits dropped because their payload has no string ``text``."""
        require_text(text)
        require_limit(limit)
        self._collections.require_ready()
        vec = self._emb.embed(text)
        name = self._collections.spec.name
        try:
            hits = self._store.search(name, vec, limit=limit, with_payload=True)
        except VectorStoreError as exc:
            logger.error("Search failed | collection=%s | %s", name, exc)
            raise QueryFailure(f"Failed to query collection: {exc}", status_code=exc.status_code) from exc

        results: List[SearchResult] = []
        malformed: List[str] = []
        for hit in hits:
            payload_text = hit.payload.get("text")
            if not isinstance(payload_text, str) or not payload_text.strip():
                malformed.append(hit.id)
                continue
            results.append(SearchResult(score=hit.score, text=payload_text, id=hit.id))
        if malformed:
            logger.warning("Dropped %d hit(s) without text payload | collection=%s | ids=%s", len(malformed), name, malformed)

        # sorted() is stable, so ties keep the index's order
        results = sorted(results, key=lambda r: r.score, reverse=True)[:limit]
        logger.info("Search | collection=%s | limit=%d | hits=%d", name, limit, len(results))
        return SearchOutcome(results=results, malformed_ids=malformed)

    def search(self, text: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[SearchResult]:
        return self.search_with_report(text, limit).results

    def execute(self, req: SearchRequest) -> List[SearchResult]:
        return self.search(req.text, req.limit)
