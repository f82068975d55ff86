from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ..application.dto import IngestRequest, SearchRequest
from ..application.embedding_gateway import CachingEmbeddingGateway, EmbeddingGateway
from ..application.use_cases.ensure_collection import CollectionManager
from ..application.use_cases.ingest_document import IngestionService
from ..application.use_cases.search_documents import SearchService
from ..domain.interfaces import EmbeddingProvider, VectorIndex
from ..infrastructure.config import Settings, load_settings, public_settings
from ..infrastructure.logging import get_logger
from ..infrastructure.openai.client import OpenAIEmbeddingProvider
from ..infrastructure.qdrant.client import QdrantVectorIndex

logger = get_logger("hivemind.api.service")


class Gateway:
    """Application object wiring the use-cases to injected client handles.

    Lifecycle: construct -> start() -> add_document()/search_documents() -> close().
    """

    def __init__(self, settings: Settings, provider: EmbeddingProvider, store: VectorIndex) -> None:
        self.settings = settings
        self._provider = provider
        self._store = store
        if settings.embed_cache_size > 0:
            self.embeddings: EmbeddingGateway = CachingEmbeddingGateway(
                provider, settings.embed_model, settings.vector_size, max_entries=settings.embed_cache_size
            )
        else:
            self.embeddings = EmbeddingGateway(provider, settings.embed_model, settings.vector_size)
        self.collections = CollectionManager(store, settings.collection_spec())
        self.ingestion = IngestionService(self.collections, self.embeddings, store)
        self.searcher = SearchService(self.collections, self.embeddings, store)

    @property
    def ready(self) -> bool:
        return self.collections.is_ready

    def start(self) -> None:
        """Block until the collection is ready; errors propagate so the caller refuses to serve."""
        logger.info("Starting gateway | %s", public_settings(self.settings))
        self.collections.ensure_ready()

    def add_document(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        req = IngestRequest.from_payload(payload)
        return self.ingestion.execute(req).as_dict()

    def search_documents(self, payload: Mapping[str, Any]) -> List[Dict[str, Any]]:
        req = SearchRequest.from_payload(payload)
        return [r.as_dict() for r in self.searcher.execute(req)]

    def health(self) -> Dict[str, Any]:
        ready = self.ready
        return {
            "status": "ok" if ready else "starting",
            "ready": ready,
            "collection": self.settings.collection_name,
        }

    def close(self) -> None:
        self._provider.close()
        self._store.close()

    def __enter__(self) -> "Gateway":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def build_gateway(settings: Optional[Settings] = None) -> Gateway:
    """Construct a Gateway with OpenAI and Qdrant clients from settings (env/.env by default)."""
    settings = settings or load_settings()
    provider = OpenAIEmbeddingProvider(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.http_timeout,
    )
    store = QdrantVectorIndex(
        base_url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        timeout=settings.http_timeout,
    )
    return Gateway(settings, provider, store)
