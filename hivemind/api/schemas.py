from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr


class AddDocumentRequest(BaseModel):
    """Body of the add-document endpoint."""

    text: StrictStr = Field(..., description="Text to embed and store")


class AddDocumentResponse(BaseModel):
    success: bool = True
    id: str


class SearchDocumentsRequest(BaseModel):
    """Body of the search endpoint. Emptiness and positivity are checked by the gateway."""

    text: StrictStr = Field(..., description="Query text")
    limit: Optional[StrictInt] = Field(default=None, description="Maximum number of results (default 5)")


class SearchHit(BaseModel):
    score: float
    text: str


class HealthResponse(BaseModel):
    status: str
    ready: bool
    collection: str


__all__ = [
    "AddDocumentRequest",
    "AddDocumentResponse",
    "SearchDocumentsRequest",
    "SearchHit",
    "HealthResponse",
]