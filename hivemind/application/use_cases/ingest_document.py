from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ..dto import IngestRequest, IngestResponse, require_text
from ..embedding_gateway import EmbeddingGateway
from .ensure_collection import CollectionManager
from ...domain.errors import PersistFailure, VectorStoreError
from ...domain.interfaces import VectorIndex
from ...domain.models import Document, Point
from ...infrastructure.logging import get_logger

logger = get_logger("hivemind.application.ingest")


class IngestionService:
    """Use-case: embed one text, assign a random UUID and timestamp, and upsert it with a commit ack."""

    def __init__(self, collections: CollectionManager, embeddings: EmbeddingGateway, store: VectorIndex) -> None:
        self._collections = collections
        self._emb = embeddings
        self._store = store

    def ingest_document(self, text: str) -> Document:
        require_text(text)
        self._collections.require_ready()
        vec = self._emb.embed(text)
        doc = Document(
            id=str(uuid.uuid4()),
            text=text,
            embedding=vec,
            created_at=datetime.now(timezone.utc),
        )
        point = Point(
            id=doc.id,
            vector=vec,
            payload={"text": doc.text, "created_at": doc.created_at.isoformat()},
        )
        name = self._collections.spec.name
        try:
            self._store.upsert(name, [point], wait=True)
        except VectorStoreError as exc:
            logger.error("Upsert failed | collection=%s | id=%s | %s", name, doc.id, exc)
            raise PersistFailure(f"Failed to persist document: {exc}", status_code=exc.status_code) from exc
        logger.info("Ingested | collection=%s | id=%s | text_len=%d", name, doc.id, len(text))
        return doc

    def ingest(self, text: str) -> str:
        return self.ingest_document(text).id

    def execute(self, req: IngestRequest) -> IngestResponse:
        return IngestResponse(id=self.ingest(req.text))
