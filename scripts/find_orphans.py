"""
Détection des blobs orphelins d'un namespace.

Liste les clés du blob store qu'aucune version du ledger ne référence; --delete les supprime.
"""

from __future__ import annotations

import argparse
import json
import sys

from mdsync.core.container import container
from mdsync.core.logging import setup_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Find blobs not referenced by the ledger")
    parser.add_argument("--namespace", default=None)
    parser.add_argument("--delete", action="store_true", help="Delete orphaned blobs")
    args = parser.parse_args(argv)
    setup_logging(container.settings.LOG_LEVEL, json_logs=container.settings.LOG_JSON, stream=sys.stderr)

    gc = container.garbage_collector(args.namespace)
    orphans = gc.find_orphaned_blobs()
    deleted = gc.delete_orphaned_blobs(orphans) if args.delete else 0
    print(json.dumps({"orphans": orphans, "deleted": deleted}))
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
