"""
Garbage collection des versions historiques d'un contenu.

Calcule le plan de rétention (min_versions + fenêtre en jours) et, avec --apply, supprime les
versions et les blobs qui ne sont plus référencés. Sans --apply, le plan est seulement affiché.
"""

from __future__ import annotations

import argparse
import json
import sys

from mdsync.core.container import container
from mdsync.core.logging import setup_logging


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: affiche le plan en JSON et retourne un code de sortie."""
    parser = argparse.ArgumentParser(description="Purge old content versions")
    parser.add_argument("record_id", help="Content id (path without extension)")
    parser.add_argument("--namespace", default=None)
    parser.add_argument("--retention-days", type=int, default=None)
    parser.add_argument("--min-versions", type=int, default=None)
    parser.add_argument("--apply", action="store_true", help="Delete planned versions")
    args = parser.parse_args(argv)
    setup_logging(container.settings.LOG_LEVEL, json_logs=container.settings.LOG_JSON, stream=sys.stderr)

    gc = container.garbage_collector(args.namespace)
    plan = gc.plan_cleanup(
        args.record_id, retention_days=args.retention_days, min_versions=args.min_versions
    )
    deleted = gc.apply_cleanup(plan) if args.apply else 0
    print(
        json.dumps(
            {
                "record_id": plan.record_id,
                "cleaned": plan.cleaned,
                "retained": plan.retained,
                "to_clean": [v.version for v in plan.to_clean],
                "applied": args.apply,
                "deleted": deleted,
            }
        )
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
