from __future__ import annotations

from typing import List, Optional

import openai
from openai import OpenAI

from ...domain.errors import EmbeddingFailure, ProviderUnavailable
from ...domain.interfaces import EmbeddingProvider

_TRANSIENT = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding adapter for the OpenAI embeddings endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[OpenAI] = None,
    ) -> None:
        # Single attempt; retry policy belongs to the caller.
        self.client = client or OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    def create_embedding(self, model: str, text: str, encoding: str = "float") -> List[List[float]]:
        try:
            response = self.client.embeddings.create(model=model, input=text, encoding_format=encoding)
        except _TRANSIENT as exc:
            # APITimeoutError subclasses APIConnectionError.
            raise ProviderUnavailable(f"Embedding provider unavailable: {exc.__class__.__name__}") from exc
        except openai.APIStatusError as exc:
            raise EmbeddingFailure(f"Embedding request rejected (status={exc.status_code})") from exc
        except openai.APIError as exc:
            raise EmbeddingFailure(f"Embedding request failed: {exc.__class__.__name__}") from exc
        return [[float(x) for x in (item.embedding or [])] for item in (response.data or [])]

    def close(self) -> None:
        self.client.close()
