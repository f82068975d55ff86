"""
Unit tests for collection readiness: creation, verification, and concurrent startup.
"""

import threading
from unittest.mock import Mock

import pytest

from hivemind.application.use_cases.ensure_collection import CollectionManager
from hivemind.domain.errors import (
    CollectionAlreadyExists,
    CollectionNotFound,
    ConfigurationMismatch,
    IndexUnavailable,
    NotReady,
)
from hivemind.domain.models import CollectionInfo, CollectionSpec, Distance

from stubs import InMemoryIndex, RacingIndex


def _spec(size=16, distance=Distance.COSINE):
    return CollectionSpec(name="Hivemind", vector_size=size, distance=distance)


class TestEnsureReady:
    def test_creates_missing_collection_with_payload_index(self):
        index = InMemoryIndex()
        manager = CollectionManager(index, _spec())

        assert not manager.is_ready
        manager.ensure_ready()

        assert manager.is_ready
        info = index.get_collection("Hivemind")
        assert info.vector_size == 16
        assert info.distance == "Cosine"
        assert info.payload_schema == {"text": "keyword"}

    def test_is_idempotent(self):
        index = InMemoryIndex()
        manager = CollectionManager(index, _spec())

        manager.ensure_ready()
        manager.ensure_ready()

        assert index.create_calls == 1
        assert manager.is_ready

    def test_existing_collection_with_matching_size_is_accepted(self):
        index = InMemoryIndex()
        index.create_collection("Hivemind", 16, Distance.COSINE)
        index.create_calls = 0

        manager = CollectionManager(index, _spec())
        manager.ensure_ready()

        assert index.create_calls == 0
        assert manager.is_ready

    def test_missing_payload_index_is_added_to_existing_collection(self):
        index = InMemoryIndex()
        index.create_collection("Hivemind", 16, Distance.COSINE)

        CollectionManager(index, _spec()).ensure_ready()

        assert index.get_collection("Hivemind").payload_schema == {"text": "keyword"}

    def test_size_mismatch_is_fatal(self):
        index = InMemoryIndex()
        index.create_collection("Hivemind", 384, Distance.COSINE)
        manager = CollectionManager(index, _spec(size=1536))

        with pytest.raises(ConfigurationMismatch, match="size=384"):
            manager.ensure_ready()

        assert not manager.is_ready
        with pytest.raises(NotReady):
            manager.require_ready()

    def test_distance_mismatch_is_fatal(self):
        index = InMemoryIndex()
        index.create_collection("Hivemind", 16, Distance.DOT)
        manager = CollectionManager(index, _spec())

        with pytest.raises(ConfigurationMismatch, match="distance"):
            manager.ensure_ready()
        assert not manager.is_ready

    def test_unknown_size_is_mismatch(self):
        store = Mock()
        store.get_collection.return_value = CollectionInfo(name="Hivemind", payload_schema={"text": "keyword"})
        manager = CollectionManager(store, _spec())

        with pytest.raises(ConfigurationMismatch, match="vector size"):
            manager.ensure_ready()
        assert not manager.is_ready
        store.create_collection.assert_not_called()
        store.create_payload_index.assert_not_called()

    def test_named_vectors_are_mismatch_even_with_matching_size(self):
        store = Mock()
        store.get_collection.return_value = CollectionInfo(
            name="Hivemind",
            vector_size=16,
            distance="Cosine",
            payload_schema={"text": "keyword"},
            named_vectors=True,
        )
        manager = CollectionManager(store, _spec())

        with pytest.raises(ConfigurationMismatch, match="named vectors"):
            manager.ensure_ready()
        assert not manager.is_ready
        with pytest.raises(NotReady):
            manager.require_ready()

    def test_unreachable_index_leaves_manager_unready(self):
        store = Mock()
        store.get_collection.side_effect = IndexUnavailable("Qdrant unreachable")
        manager = CollectionManager(store, _spec())

        with pytest.raises(IndexUnavailable):
            manager.ensure_ready()
        assert not manager.is_ready

    def test_failed_attempt_can_be_retried(self):
        index = InMemoryIndex()
        manager = CollectionManager(index, _spec())
        original = index.get_collection
        index.get_collection = Mock(side_effect=IndexUnavailable("down"))

        with pytest.raises(IndexUnavailable):
            manager.ensure_ready()

        index.get_collection = original
        manager.ensure_ready()
        assert manager.is_ready


class TestConcurrentStartup:
    def test_already_exists_from_concurrent_instance_is_success(self):
        store = Mock()
        store.get_collection.side_effect = [
            CollectionNotFound("missing"),
            CollectionInfo(name="Hivemind", vector_size=16, distance="Cosine", payload_schema={"text": "keyword"}),
        ]
        store.create_collection.side_effect = CollectionAlreadyExists("exists", status_code=409)
        manager = CollectionManager(store, _spec())

        manager.ensure_ready()

        assert manager.is_ready
        assert store.get_collection.call_count == 2

    def test_two_instances_racing_on_empty_index_yield_one_collection(self):
        index = RacingIndex(parties=2)
        managers = [CollectionManager(index, _spec()) for _ in range(2)]
        errors = []

        def start(m):
            try:
                m.ensure_ready()
            except Exception as exc:  # collected for the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=start, args=(m,)) for m in managers]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert all(m.is_ready for m in managers)
        assert list(index.collections) == ["Hivemind"]
        # both saw "not found" and tried to create; the loser got AlreadyExists
        assert index.create_calls == 2

    def test_concurrent_calls_on_one_manager_initialise_once(self):
        index = InMemoryIndex()
        manager = CollectionManager(index, _spec())
        threads = [threading.Thread(target=manager.ensure_ready) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert manager.is_ready
        assert index.create_calls == 1
