"""
Unit tests for similarity search: relevance, ordering, limits, and malformed payloads.
"""

from unittest.mock import Mock

import pytest

from hivemind.application.dto import SearchRequest
from hivemind.application.embedding_gateway import EmbeddingGateway
from hivemind.application.use_cases.ensure_collection import CollectionManager
from hivemind.application.use_cases.search_documents import SearchService
from hivemind.domain.errors import (
    ConfigurationMismatch,
    InvalidInput,
    NotReady,
    QueryFailure,
    VectorIndexError,
)
from hivemind.domain.models import CollectionSpec, QueryResult

from stubs import DIM, FixedEmbedder


DOCS = [
    "the sky is blue",
    "grass grows green in spring",
    "the ocean is deep and wide",
    "coffee tastes bitter",
    "blue whales live in the ocean",
]


@pytest.fixture
def populated(ingestion):
    for text in DOCS:
        ingestion.ingest(text)
    return ingestion


class TestSearch:
    def test_empty_collection_returns_empty_list(self, searcher):
        assert searcher.search("anything at all") == []

    def test_nearest_document_ranks_first(self, populated, searcher):
        results = searcher.search("sky color", limit=1)

        assert len(results) == 1
        assert results[0].text == "the sky is blue"

    def test_results_respect_limit_and_descending_order(self, populated, searcher):
        for k in (1, 2, 3, 10):
            results = searcher.search("the blue ocean", limit=k)
            assert len(results) <= k
            scores = [r.score for r in results]
            assert scores == sorted(scores, reverse=True)

    def test_default_limit_is_five(self, ingestion, searcher):
        for i in range(7):
            ingestion.ingest(f"note {i}")
        assert len(searcher.search("note")) == 5

    def test_ingested_text_is_immediately_searchable(self, ingestion, searcher):
        ingestion.ingest("the sky is blue")
        assert searcher.search("the sky is blue", limit=1)[0].text == "the sky is blue"

    def test_execute_uses_request_limit(self, populated, searcher):
        assert len(searcher.execute(SearchRequest(text="the", limit=2))) == 2


class TestMalformedHits:
    def test_hits_without_text_are_omitted_and_reported(self, populated, searcher, index):
        index.add_raw("Hivemind", "bad-1", [1.0] + [0.0] * (DIM - 1), payload={"created_at": "x"})
        index.add_raw("Hivemind", "bad-2", [1.0] + [0.0] * (DIM - 1), payload={"text": 7})

        outcome = searcher.search_with_report("the sky is blue", limit=10)

        assert sorted(outcome.malformed_ids) == ["bad-1", "bad-2"]
        assert all(isinstance(r.text, str) and r.text for r in outcome.results)
        assert "bad-1" not in {r.id for r in outcome.results}

    def test_blank_text_is_malformed(self, populated, searcher, index):
        index.add_raw("Hivemind", "empty", [1.0] + [0.0] * (DIM - 1), payload={"text": ""})
        index.add_raw("Hivemind", "blank", [1.0] + [0.0] * (DIM - 1), payload={"text": "  \n\t"})

        outcome = searcher.search_with_report("the sky is blue", limit=10)

        assert sorted(outcome.malformed_ids) == ["blank", "empty"]
        assert all(r.text.strip() for r in outcome.results)

    def test_results_are_sorted_even_if_index_is_not(self, ready_collections, embeddings):
        store = Mock()
        store.search.return_value = [
            QueryResult(id="a", score=0.2, payload={"text": "low"}),
            QueryResult(id="b", score=0.9, payload={"text": "high"}),
            QueryResult(id="c", score=0.2, payload={"text": "low-tie"}),
        ]
        service = SearchService(ready_collections, embeddings, store)

        results = service.search("query", limit=3)

        assert [r.text for r in results] == ["high", "low", "low-tie"]


class TestSearchFailures:
    @pytest.mark.parametrize("limit", [0, -1, True, 2.5, "3"])
    def test_invalid_limit(self, searcher, embedder, limit):
        with pytest.raises(InvalidInput):
            searcher.search("sky", limit=limit)
        assert embedder.calls == []

    def test_empty_text(self, searcher, embedder):
        with pytest.raises(InvalidInput):
            searcher.search("")
        assert embedder.calls == []

    def test_not_ready(self, index, embeddings):
        manager = CollectionManager(index, CollectionSpec(name="Hivemind", vector_size=DIM))
        with pytest.raises(NotReady):
            SearchService(manager, embeddings, index).search("sky")

    def test_wrong_dimension_never_reaches_index(self, ready_collections):
        store = Mock()
        service = SearchService(ready_collections, EmbeddingGateway(FixedEmbedder([[0.1] * 4]), "m", DIM), store)

        with pytest.raises(ConfigurationMismatch):
            service.search("sky")
        store.search.assert_not_called()

    def test_index_error_becomes_query_failure(self, ready_collections, embeddings):
        store = Mock()
        store.search.side_effect = VectorIndexError("bad request", status_code=400)
        service = SearchService(ready_collections, embeddings, store)

        with pytest.raises(QueryFailure) as excinfo:
            service.search("sky")
        assert excinfo.value.status_code == 400
        assert isinstance(excinfo.value.__cause__, VectorIndexError)
