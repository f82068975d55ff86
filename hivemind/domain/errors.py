from __future__ import annotations

from typing import Optional


class GatewayError(RuntimeError):
    """Base class for every classified gateway failure.

    Fields:
        kind: Stable machine-readable label used by transports and logs.
        client_error: True when the remote caller can fix the request.
    """

    kind = "internal"
    client_error = False


class InvalidInput(GatewayError, ValueError):
    """Raised when request violates documented contract (empty text, bad limit)."""

    kind = "invalid_input"
    client_error = True


class NotReady(GatewayError):
    """Raised when the collection has not been initialised yet."""

    kind = "not_ready"


class ConfigurationMismatch(GatewayError):
    """Raised when collection and embedding model disagree on dimensionality."""

    kind = "configuration_mismatch"


class EmbeddingError(GatewayError):
    """Raised when embedding provider fails."""

    kind = "embedding_error"


class ProviderUnavailable(EmbeddingError):
    """Provider unreachable, timed out or rate limited; caller may retry later."""

    kind = "provider_unavailable"


class EmbeddingFailure(EmbeddingError):
    """Provider answered but produced no usable embedding."""

    kind = "embedding_failure"


class VectorStoreError(GatewayError):
    """Raised when vector store provider fails."""

    kind = "vector_store_error"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VectorIndexError(VectorStoreError):
    """Index rejected the request."""

    kind = "index_error"


class IndexUnavailable(VectorStoreError):
    """Index unreachable or timed out."""

    kind = "index_unavailable"


class CollectionNotFound(VectorStoreError):
    kind = "collection_not_found"


class CollectionAlreadyExists(VectorStoreError):
    kind = "collection_already_exists"


class PersistFailure(VectorStoreError):
    """Upsert was not acknowledged by the index."""

    kind = "persist_failure"


class QueryFailure(VectorStoreError):
    """Similarity search failed at the index."""

    kind = "query_failure"
