from __future__ import annotations

import hashlib
import threading
from collections import OrderedDict

from ..domain.errors import ConfigurationMismatch, EmbeddingFailure
from ..domain.interfaces import EmbeddingProvider
from ..domain.models import Vector
from .dto import require_text


class EmbeddingGateway:
    """Embed one text with the configured model and check the result's shape."""

    encoding = "float"

    def __init__(self, provider: EmbeddingProvider, model: str, vector_size: int) -> None:
        self._provider = provider
        self.model = model
        self.vector_size = int(vector_size)

    def embed(self, text: str) -> Vector:
        """Return the embedding of ``text``.

        Raises:
            InvalidInput: ``text`` is empty.
            ProviderUnavailable: Provider unreachable or rate limited (from the adapter).
            EmbeddingFailure: Provider returned no usable embedding.
            ConfigurationMismatch: Embedding length differs from the collection's vector size.
        """
        require_text(text)
        entries = self._provider.create_embedding(self.model, text, self.encoding)
        if not entries or not entries[0]:
            raise EmbeddingFailure(f"Embedding model {self.model} returned no embedding")
        values = [float(x) for x in entries[0]]
        if len(values) != self.vector_size:
            raise ConfigurationMismatch(
                f"Embedding model {self.model} produced {len(values)} dimensions, "
                f"collection expects {self.vector_size}"
            )
        return Vector(values=values, dim=len(values))


class CachingEmbeddingGateway(EmbeddingGateway):
    """EmbeddingGateway with a bounded LRU keyed by the SHA-256 of the text.

    Only successful embeddings are cached. The lock is never held across the provider call.
    """

    def __init__(self, provider: EmbeddingProvider, model: str, vector_size: int, max_entries: int = 1024) -> None:
        super().__init__(provider, model, vector_size)
        self.max_entries = max(1, int(max_entries))
        self._cache: "OrderedDict[str, Vector]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def _key(text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def embed(self, text: str) -> Vector:
        require_text(text)
        key = self._key(text)
        with self._lock:
            hit = self._cache.get(key)
            if hit is not None:
                self._cache.move_to_end(key)
                return hit
        vec = super().embed(text)
        with self._lock:
            self._cache[key] = vec
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_entries:
                self._cache.popitem(last=False)
        return vec

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
