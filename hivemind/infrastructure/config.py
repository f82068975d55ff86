from __future__ import annotations

import contextlib
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..domain.errors import ConfigurationMismatch
from ..domain.models import CollectionSpec, Distance


def _parse_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """Parse a simple .env file (KEY=VALUE per line, '#' comments, quotes stripped)."""
    env: Dict[str, str] = {}
    if dotenv_path.exists():
        with contextlib.suppress(OSError):
            for raw in dotenv_path.read_text(encoding="utf-8", errors="ignore").splitlines():
                s = raw.strip()
                if not s or s.startswith("#") or "=" not in s:
                    continue
                k, v = s.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k:
                    env[k] = v
    return env


def _env_get(key: str) -> Optional[str]:
    """Get environment value from process env, falling back to .env in CWD."""
    v = os.getenv(key)
    if v is not None and v.strip():
        return v.strip()
    v2 = _parse_dotenv(Path(".env")).get(key)
    return v2.strip() if v2 is not None and v2.strip() else None


def env_str(name: str, default: str) -> str:
    return _env_get(name) or default


def env_int(name: str, default: int) -> int:
    try:
        return int(env_str(name, str(default)))
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    try:
        return float(env_str(name, str(default)))
    except ValueError:
        return default


def qdrant_url() -> str:
    return env_str("QDRANT_URL", "http://localhost:6333").rstrip("/")


def embed_model() -> str:
    return env_str("EMBED_MODEL", "text-embedding-3-small")


def collection_name() -> str:
    return env_str("HIVEMIND_COLLECTION_NAME", "Hivemind")


def vector_size() -> int:
    """Dimensionality of the collection; must match the configured embedding model."""
    size = env_int("HIVEMIND_VECTOR_SIZE", 1536)
    return size if size > 0 else 1536


@dataclass(frozen=True)
class Settings:
    """Deployment configuration, resolved once at startup."""
    collection_name: str = "Hivemind"
    vector_size: int = 1536
    distance: Distance = Distance.COSINE
    embed_model: str = "text-embedding-3-small"
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: Optional[str] = None
    http_timeout: float = 15.0
    embed_cache_size: int = 0
    host: str = "0.0.0.0"
    port: int = 8000

    def collection_spec(self) -> CollectionSpec:
        return CollectionSpec(name=self.collection_name, vector_size=self.vector_size, distance=self.distance)


def load_settings() -> Settings:
    """Build Settings from the process environment and ./.env.

    Raises:
        ConfigurationMismatch: HIVEMIND_DISTANCE names an unknown metric.
    """
    raw_distance = env_str("HIVEMIND_DISTANCE", "Cosine")
    try:
        distance = Distance.parse(raw_distance)
    except ValueError as exc:
        raise ConfigurationMismatch(str(exc)) from exc
    timeout = env_float("HIVEMIND_HTTP_TIMEOUT", 15.0)
    return Settings(
        collection_name=collection_name(),
        vector_size=vector_size(),
        distance=distance,
        embed_model=embed_model(),
        openai_api_key=_env_get("OPENAI_API_KEY"),
        openai_base_url=_env_get("OPENAI_BASE_URL"),
        qdrant_url=qdrant_url(),
        qdrant_api_key=_env_get("QDRANT_API_KEY"),
        http_timeout=timeout if timeout > 0 else 15.0,
        embed_cache_size=max(0, env_int("HIVEMIND_EMBED_CACHE_SIZE", 0)),
        host=env_str("HIVEMIND_HOST", "0.0.0.0"),
        port=env_int("HIVEMIND_PORT", 8000),
    )


def public_settings(settings: Settings) -> Dict[str, Any]:
    """Return settings without secrets for safe logging."""
    data = asdict(settings)
    data.pop("openai_api_key", None)
    data.pop("qdrant_api_key", None)
    data["distance"] = settings.distance.value
    return data
