"""Garbage collection des versions historiques et des blobs orphelins.

La planification est pure (``mdsync.domain.retention``); ce service applique les plans sur un
record store. Chaque étape est idempotente: rejouer un plan déjà appliqué ne supprime rien.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

import structlog

from mdsync.app.metrics import GC_VERSIONS_DELETED
from mdsync.domain import retention
from mdsync.domain.retention import CleanupPlan
from mdsync.services.record_store import VersionedRecordStore


class GarbageCollector:
    """Purge des versions et des blobs d'un namespace."""

    def __init__(
        self,
        store: VersionedRecordStore,
        *,
        retention_days: int = retention.DEFAULT_RETENTION_DAYS,
        min_versions: int = retention.DEFAULT_MIN_VERSIONS,
    ) -> None:
        self.store = store
        self.retention_days = retention_days
        self.min_versions = min_versions
        self._log = structlog.get_logger(__name__).bind(
            component="garbage_collector", namespace=store.namespace
        )

    def plan_cleanup(
        self,
        record_id: str,
        *,
        retention_days: int | None = None,
        min_versions: int | None = None,
        now: datetime | None = None,
    ) -> CleanupPlan:
        return retention.plan_cleanup(
            record_id,
            self.store.list_versions(record_id),
            retention_days=self.retention_days if retention_days is None else retention_days,
            min_versions=self.min_versions if min_versions is None else min_versions,
            now=now,
        )

    def apply_cleanup(self, plan: CleanupPlan) -> int:
        """Supprime les versions du plan; retourne le nombre de versions supprimées.

        La dernière version n'est jamais supprimée, quel que soit le plan: elle porte le numéro
        de version courant. Les blobs encore référencés par une version conservée restent en place.
        """
        history = [v.version for v in self.store.list_versions(plan.record_id)]
        if not history:
            return 0
        latest = max(history)
        victims = {v.version for v in plan.to_clean if v.version != latest} & set(history)
        if not victims:
            return 0

        survivors = [v for v in history if v not in victims]
        kept_keys = self.store.blob_keys_for(plan.record_id, survivors)
        for key in self.store.blob_keys_for(plan.record_id, victims) - kept_keys:
            self.store.blobs.delete(key)

        deleted = self.store.delete_versions(plan.record_id, sorted(victims))
        GC_VERSIONS_DELETED.inc(deleted)
        self._log.info("versions_cleaned", record_id=plan.record_id, deleted=deleted)
        return deleted

    def referenced_blob_keys(self) -> set[str]:
        """Clés de blob référencées par au moins une version du namespace."""
        keys: set[str] = set()
        for record in self.store.list_records():
            keys |= self.store.blob_keys_for(record.id)
        return keys

    def find_orphaned_blobs(self, known_keys: Iterable[str] | None = None) -> list[str]:
        if known_keys is None:
            known_keys = self.store.blobs.list_keys()
        return retention.find_orphaned_blobs(known_keys, self.referenced_blob_keys())

    def delete_orphaned_blobs(self, keys: Iterable[str]) -> int:
        """Supprime les clés encore orphelines au moment de l'appel."""
        referenced = self.referenced_blob_keys()
        deleted = 0
        for key in keys:
            if key in referenced:
                continue
            self.store.blobs.delete(key)
            deleted += 1
        if deleted:
            self._log.info("orphaned_blobs_deleted", count=deleted)
        return deleted
