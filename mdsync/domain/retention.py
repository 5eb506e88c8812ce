"""Politique de rétention des versions et détection des blobs orphelins.

Ce module ne fait que calculer des plans; la suppression physique est une étape séparée et
idempotente exécutée par le garbage collector.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from mdsync.domain.content import ContentVersion

DEFAULT_RETENTION_DAYS = 30
DEFAULT_MIN_VERSIONS = 1


@dataclass(frozen=True)
class CleanupPlan:
    """Plan de nettoyage d'un contenu (versions à supprimer / conserver)."""

    record_id: str
    to_clean: list[ContentVersion] = field(default_factory=list)
    to_retain: list[ContentVersion] = field(default_factory=list)

    @property
    def cleaned(self) -> int:
        return len(self.to_clean)

    @property
    def retained(self) -> int:
        return len(self.to_retain)


def plan_cleanup(
    record_id: str,
    versions: Iterable[ContentVersion],
    *,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    min_versions: int = DEFAULT_MIN_VERSIONS,
    now: datetime | None = None,
) -> CleanupPlan:
    """Calcule les versions à purger.

    Les ``min_versions`` plus récentes sont toujours conservées; parmi les autres, celles plus
    récentes que ``now - retention_days`` sont conservées, le reste est à purger.
    """
    cutoff = (now or datetime.now(UTC)) - timedelta(days=retention_days)
    ordered = sorted(versions, key=lambda v: v.version, reverse=True)
    to_clean: list[ContentVersion] = []
    to_retain: list[ContentVersion] = []
    for index, version in enumerate(ordered):
        if index < min_versions or version.stored_at >= cutoff:
            to_retain.append(version)
        else:
            to_clean.append(version)
    return CleanupPlan(record_id=record_id, to_clean=to_clean, to_retain=to_retain)


def find_orphaned_blobs(known_keys: Iterable[str], referenced_keys: Iterable[str]) -> list[str]:
    """Clés physiques non référencées par le ledger (ordre d'entrée conservé)."""
    referenced = set(referenced_keys)
    return [key for key in known_keys if key not in referenced]
