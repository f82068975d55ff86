from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Hivemind gateway (OpenAI embeddings + Qdrant)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    # Create the collection and payload index if missing; verify otherwise
    sub.add_parser("ensure-collection")

    # Ingest documents (direct text or file lines)
    ad = sub.add_parser("add")
    ad.add_argument("--text", action="append", default=[], help="A document to store; can repeat")
    ad.add_argument("--file", help="Path to a file; each non-empty line becomes a document")

    sr = sub.add_parser("search")
    sr.add_argument("--q", required=True, help="Query text")
    sr.add_argument("--k", type=int, default=5, help="Maximum number of results")

    sub.add_parser("health")

    sv = sub.add_parser("serve")
    sv.add_argument("--host", default=None, help="Bind address; defaults to $HIVEMIND_HOST")
    sv.add_argument("--port", type=int, default=None, help="Bind port; defaults to $HIVEMIND_PORT")

    return ap
