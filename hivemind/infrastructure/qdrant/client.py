from __future__ import annotations

from contextlib import suppress
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

from ...domain.errors import (
    CollectionAlreadyExists,
    CollectionNotFound,
    IndexUnavailable,
    VectorIndexError,
)
from ...domain.interfaces import VectorIndex
from ...domain.models import CollectionInfo, Distance, Point, QueryResult, Vector
from ..logging import get_logger

logger = get_logger("hivemind.infrastructure.qdrant")


def _error_message(r: requests.Response) -> str:
    """Extract Qdrant's ``status.error`` text, falling back to the raw body."""
    with suppress(ValueError):
        data = r.json() or {}
        status = data.get("status")
        if isinstance(status, dict) and status.get("error"):
            return str(status["error"])
    return (r.text or r.reason or "").strip()[:500]


def _vector_params(params: Any) -> Tuple[Dict[str, Any], bool]:
    """Return ``(config, named)``: the single-vector config, or the first named vector's config."""
    if isinstance(params, dict) and "size" in params:
        return params, False
    if isinstance(params, dict):
        for v in params.values():
            if isinstance(v, dict) and "size" in v:
                return v, True
        return {}, bool(params)
    return {}, False


def _path(name: str, suffix: str = "") -> str:
    return f"/collections/{quote(name, safe='')}{suffix}"


class QdrantVectorIndex(VectorIndex):
    """Vector index adapter for Qdrant REST."""

    def __init__(
        self,
        base_url: str = "http://localhost:6333",
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if api_key:
            self._session.headers["api-key"] = api_key

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self._base}{path}"
        try:
            return self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.Timeout as exc:
            raise IndexUnavailable(f"Qdrant {method} {path} timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise IndexUnavailable(f"Qdrant unreachable at {self._base}: {exc.__class__.__name__}") from exc

    def _check(self, r: requests.Response, action: str) -> Dict[str, Any]:
        if r.status_code >= 500:
            raise IndexUnavailable(f"{action} failed: {_error_message(r)}", status_code=r.status_code)
        if r.status_code >= 400:
            raise VectorIndexError(f"{action} rejected: {_error_message(r)}", status_code=r.status_code)
        with suppress(ValueError):
            return r.json() or {}
        return {}

    def get_collection(self, name: str) -> CollectionInfo:
        r = self._request("GET", _path(name))
        if r.status_code == 404:
            raise CollectionNotFound(f"Collection {name} does not exist", status_code=404)
        data = self._check(r, f"Describe collection {name}")
        result = data.get("result") or {}
        try:
            params, named = _vector_params(result["config"]["params"]["vectors"])
        except (KeyError, TypeError):
            params, named = {}, False
        size = params.get("size")
        schema = {
            str(k): str((v or {}).get("data_type", ""))
            for k, v in (result.get("payload_schema") or {}).items()
        }
        points = result.get("points_count")
        return CollectionInfo(
            name=name,
            vector_size=int(size) if size is not None else None,
            distance=params.get("distance"),
            payload_schema=schema,
            points_count=int(points) if points is not None else None,
            named_vectors=named,
        )

    def create_collection(self, name: str, vector_size: int, distance: Distance) -> None:
        body = {"vectors": {"size": int(vector_size), "distance": Distance(distance).value}}
        r = self._request("PUT", _path(name), json=body)
        # Newer Qdrant answers 409; older releases answer 400 with an "already exists" message.
        if r.status_code == 409 or (r.status_code == 400 and "already exists" in _error_message(r).lower()):
            raise CollectionAlreadyExists(f"Collection {name} already exists", status_code=r.status_code)
        self._check(r, f"Create collection {name}")
        logger.info("Created collection | name=%s | size=%d | distance=%s", name, vector_size, body["vectors"]["distance"])

    def create_payload_index(self, name: str, field: str, schema_type: str, wait: bool = True) -> None:
        r = self._request(
            "PUT",
            _path(name, "/index"),
            params={"wait": str(wait).lower()},
            json={"field_name": field, "field_schema": schema_type},
        )
        self._check(r, f"Create payload index {name}.{field}")

    def upsert(self, name: str, points: List[Point], wait: bool = True) -> None:
        body = {
            "points": [
                {"id": p.id, "vector": p.vector.values, "payload": p.payload}
                for p in points
            ]
        }
        r = self._request("PUT", _path(name, "/points"), params={"wait": str(wait).lower()}, json=body)
        data = self._check(r, f"Upsert into {name}")
        status = (data.get("result") or {}).get("status")
        if wait and status not in (None, "completed"):
            raise VectorIndexError(f"Upsert into {name} not committed (status={status})")

    def search(self, name: str, vector: Vector, limit: int = 5, with_payload: bool = True) -> List[QueryResult]:
        body = {
            "vector": vector.values,
            "limit": int(limit),
            "with_vector": False,
            "with_payload": with_payload,
        }
        r = self._request("POST", _path(name, "/points/search"), json=body)
        if r.status_code == 404:
            raise CollectionNotFound(f"Collection {name} does not exist", status_code=404)
        data = self._check(r, f"Search {name}")
        return [
            QueryResult(
                id=str(it.get("id")),
                score=float(it.get("score", 0.0)),
                payload=it.get("payload") or {},
            )
            for it in (data.get("result") or [])
        ]

    def close(self) -> None:
        self._session.close()
