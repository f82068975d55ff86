"""
Pytest configuration and fixtures for hivemind gateway tests.

Provides in-memory provider/index stubs wired into the use-cases.
"""

import os

import pytest

from hivemind.api.service import Gateway
from hivemind.application.embedding_gateway import EmbeddingGateway
from hivemind.application.use_cases.ensure_collection import CollectionManager
from hivemind.application.use_cases.ingest_document import IngestionService
from hivemind.application.use_cases.search_documents import SearchService
from hivemind.infrastructure.config import Settings

from stubs import DIM, InMemoryIndex, VocabularyEmbedder


@pytest.fixture
def settings():
    return Settings(collection_name="Hivemind", vector_size=DIM, embed_model="test-embed")


@pytest.fixture
def embedder():
    return VocabularyEmbedder(dim=DIM)


@pytest.fixture
def index():
    return InMemoryIndex()


@pytest.fixture
def collections(index, settings):
    return CollectionManager(index, settings.collection_spec())


@pytest.fixture
def ready_collections(collections):
    collections.ensure_ready()
    return collections


@pytest.fixture
def embeddings(embedder, settings):
    return EmbeddingGateway(embedder, settings.embed_model, settings.vector_size)


@pytest.fixture
def ingestion(ready_collections, embeddings, index):
    return IngestionService(ready_collections, embeddings, index)


@pytest.fixture
def searcher(ready_collections, embeddings, index):
    return SearchService(ready_collections, embeddings, index)


@pytest.fixture
def gateway(settings, embedder, index):
    return Gateway(settings, embedder, index)


@pytest.fixture
def clean_environment(monkeypatch, tmp_path):
    """Clear hivemind-related env vars and run from an empty directory (no .env)."""
    for var in list(os.environ):
        if var.startswith("HIVEMIND_") or var in {
            "QDRANT_URL",
            "QDRANT_API_KEY",
            "OPENAI_API_KEY",
            "OPENAI_BASE_URL",
            "EMBED_MODEL",
        }:
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
