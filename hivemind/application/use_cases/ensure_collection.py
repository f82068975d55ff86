from __future__ import annotations

import threading

from ...domain.errors import CollectionAlreadyExists, CollectionNotFound, ConfigurationMismatch, NotReady
from ...domain.interfaces import VectorIndex
from ...domain.models import CollectionInfo, CollectionSpec
from ...infrastructure.logging import get_logger

logger = get_logger("hivemind.application.collection")


class CollectionManager:
    """Use-case: ensure the collection exists with the expected shape, and own readiness."""

    def __init__(self, store: VectorIndex, spec: CollectionSpec) -> None:
        self._store = store
        self.spec = spec
        self._ready = threading.Event()
        self._init_lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def require_ready(self) -> None:
        if not self._ready.is_set():
            raise NotReady(f"Collection {self.spec.name} is not initialised yet")

    def ensure_ready(self) -> None:
        """
        Ensures that the collection exists with the configured dimension, distance and payload indexes.

        Creates the collection when missing. A concurrent creator winning the race is treated as
        success and the collection is re-read and verified. Readiness is published only after every
        check passed; on failure the error propagates and readiness stays unset.

        Raises:
            ConfigurationMismatch: Existing collection has a different or unknown vector size, a
                different distance, or uses named vectors.
            VectorStoreError: Index unreachable or rejected the creation parameters.
        """
        if self._ready.is_set():
            return
        with self._init_lock:
            if self._ready.is_set():
                return
            info = self._get_or_create()
            self._verify(info)
            self._ensure_payload_indexes(info)
            self._ready.set()
            logger.info("Collection ready | name=%s | size=%d | distance=%s", self.spec.name, self.spec.vector_size, self.spec.distance.value)

    def describe(self) -> CollectionInfo:
        return self._store.get_collection(self.spec.name)

    def _get_or_create(self) -> CollectionInfo:
        name = self.spec.name
        try:
            return self._store.get_collection(name)
        except CollectionNotFound:
            logger.info("Collection %s not found; creating", name)
        try:
            self._store.create_collection(name, self.spec.vector_size, self.spec.distance)
        except CollectionAlreadyExists:
            logger.info("Collection %s created concurrently by another instance", name)
        return self._store.get_collection(name)

    def _verify(self, info: CollectionInfo) -> None:
        # Points are written as a single unnamed vector.
        if info.named_vectors:
            raise ConfigurationMismatch(
                f"Collection {info.name} uses named vectors; expected a single unnamed vector"
            )
        if info.vector_size is None:
            raise ConfigurationMismatch(f"Collection {info.name} does not report a vector size")
        if info.vector_size != self.spec.vector_size:
            raise ConfigurationMismatch(
                f"Collection {info.name} has size={info.vector_size}, expected={self.spec.vector_size}"
            )
        if info.distance and info.distance.lower() != self.spec.distance.value.lower():
            raise ConfigurationMismatch(
                f"Collection {info.name} uses distance={info.distance}, expected={self.spec.distance.value}"
            )

    def _ensure_payload_indexes(self, info: CollectionInfo) -> None:
        for field, schema_type in self.spec.payload_indexes.items():
            if field in info.payload_schema:
                continue
            self._store.create_payload_index(self.spec.name, field, schema_type, wait=True)
            logger.info("Created payload index | collection=%s | field=%s | type=%s", self.spec.name, field, schema_type)
