from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ..api.service import Gateway, build_gateway
from ..domain.errors import GatewayError
from ..infrastructure.config import load_settings
from ..infrastructure.logging import get_logger
from .parsers import build_parser

logger = get_logger("hivemind.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _collect_texts(texts: Sequence[str], file: Optional[str]) -> List[str]:
    """Merge --text values with the non-empty lines of --file, preserving order."""
    out = [t for t in texts if t and t.strip()]
    if file:
        for line in Path(file).read_text(encoding="utf-8").splitlines():
            if line.strip():
                out.append(line.strip())
    return out


def ensure_collection(ns, gateway: Gateway) -> int:
    gateway.start()
    info = gateway.collections.describe()
    _print_json({"status": "ok", "collection": asdict(info)})
    return EXIT_OK


def add_documents(ns, gateway: Gateway) -> int:
    try:
        texts = _collect_texts(ns.text, ns.file)
    except OSError as exc:
        print(f"Cannot read {ns.file}: {exc.strerror or exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    if not texts:
        print("Nothing to add: pass --text or --file", file=sys.stderr)
        return EXIT_INVALID_INPUT
    gateway.start()
    ids = [gateway.add_document({"text": t})["id"] for t in texts]
    _print_json({"success": True, "ids": ids})
    return EXIT_OK


def search_documents(ns, gateway: Gateway) -> int:
    gateway.start()
    _print_json(gateway.search_documents({"text": ns.q, "limit": ns.k}))
    return EXIT_OK


def health(ns, gateway: Gateway) -> int:
    try:
        gateway.start()
    except GatewayError as exc:
        logger.error("Not ready | kind=%s | %s", exc.kind, exc)
    body = gateway.health()
    _print_json(body)
    return EXIT_OK if body["ready"] else EXIT_FAILURE


def serve(ns) -> int:
    import uvicorn

    from ..api.http import create_app

    settings = load_settings()
    uvicorn.run(
        create_app(build_gateway(settings)),
        host=ns.host or settings.host,
        port=ns.port or settings.port,
    )
    return EXIT_OK


_COMMANDS = {
    "ensure-collection": ensure_collection,
    "add": add_documents,
    "search": search_documents,
    "health": health,
}


def main(argv: Optional[Sequence[str]] = None, gateway: Optional[Gateway] = None) -> int:
    ns = build_parser().parse_args(argv)
    if ns.cmd == "serve":
        return serve(ns)
    handler = _COMMANDS[ns.cmd]
    gw = gateway or build_gateway()
    try:
        return handler(ns, gw)
    except GatewayError as exc:
        logger.error("%s failed | kind=%s | %s", ns.cmd, exc.kind, exc)
        _print_json({"status": "error", "kind": exc.kind, "error": str(exc)})
        return EXIT_INVALID_INPUT if exc.client_error else EXIT_FAILURE
    finally:
        gw.close()


if __name__ == "__main__":
    raise SystemExit(main())
