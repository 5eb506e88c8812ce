# ============================================================
# Module : mdsync/services/record_store.py
# Objet  : Store versionné à niveaux (ledger + blob store).
# Invariants :
#  - Chaque écriture crée une nouvelle version, jamais de mise à jour en place.
#  - Un enregistrement débordé a content == "" dans le ledger et un blob_key.
#  - Les appelants ne testent jamais l'emplacement physique: get() hydrate.
# ============================================================
"""Store de contenus versionné et hiérarchisé.

Enveloppe un ledger (sérialisé par clé) et un blob store. Le store est lié à un namespace de
ledger et possède seul le cycle de vie des ``ContentRecord``/``ContentVersion``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal

import structlog

from mdsync.app.metrics import BLOB_FETCH_FAILURES, RECORD_WRITES
from mdsync.domain.content import (
    AccessStats,
    BatchDeleteResult,
    BatchGetResult,
    BatchStoreResult,
    ContentRecord,
    ContentVersion,
    StorageMetrics,
    StorageTier,
    VersionDiff,
)
from mdsync.domain.diff import ContentDiff, compute_diff
from mdsync.domain.errors import BlobNotFoundError
from mdsync.domain.frontmatter import parse_frontmatter
from mdsync.domain.identity import (
    OVERFLOW_THRESHOLD,
    blob_key_for,
    content_size,
    hash_content,
    should_overflow,
)
from mdsync.domain.tiering import COLD_DAYS_THRESHOLD, HOT_ACCESS_THRESHOLD, classify
from mdsync.infra.blobs.base import BlobStore
from mdsync.infra.ledger.base import Ledger

OrderBy = Literal["version", "timestamp"]


@dataclass(frozen=True)
class DiffStorageResult:
    """Version écrite et diff par rapport à la précédente (mesure uniquement)."""

    record: ContentRecord
    diff: ContentDiff | None

    @property
    def diff_stored(self) -> bool:
        return self.diff is not None and self.diff.has_changes


class VersionedRecordStore:
    """Store versionné d'un namespace."""

    def __init__(
        self,
        ledger: Ledger,
        blobs: BlobStore,
        *,
        overflow_threshold: int = OVERFLOW_THRESHOLD,
        hot_access_threshold: int = HOT_ACCESS_THRESHOLD,
        cold_days: int = COLD_DAYS_THRESHOLD,
    ) -> None:
        self.ledger = ledger
        self.blobs = blobs
        self.overflow_threshold = overflow_threshold
        self.hot_access_threshold = hot_access_threshold
        self.cold_days = cold_days
        self._log = structlog.get_logger(__name__).bind(
            component="record_store", namespace=ledger.namespace
        )

    @property
    def namespace(self) -> str:
        return self.ledger.namespace

    # ---- writes ---------------------------------------------------------

    def store(self, record_id: str, content: str) -> ContentRecord:
        """Écrit une nouvelle version.

        Au-delà du seuil, le corps part dans le blob store sous ``{id}-{hash}`` et le ledger reçoit
        un enregistrement vide pointant vers ce blob.
        """
        data = parse_frontmatter(content)
        content_hash = hash_content(content)
        size = content_size(content)

        if should_overflow(size, self.overflow_threshold):
            key = blob_key_for(record_id, content_hash)
            self.blobs.put(key, content)
            record = self.ledger.store_content(
                record_id, "", data, blob_key=key, content_hash=content_hash, size=size
            )
            tier = StorageTier.WARM
        else:
            record = self.ledger.store_content(record_id, content, data)
            tier = StorageTier.HOT

        RECORD_WRITES.labels(tier.value).inc()
        self._log.info(
            "content_stored", record_id=record_id, version=record.version, size=size, tier=tier.value
        )
        if record.blob_key:
            record = record.with_content(content)
        return record.with_tier(tier)

    def promote(self, record_id: str) -> ContentRecord | None:
        """Ramène un contenu débordé dans le ledger (nouvelle version, tier hot).

        Sans effet si le contenu est déjà dans le ledger. Un blob introuvable est fatal.
        """
        current = self.ledger.get_content(record_id)
        if current is None:
            return None
        if not current.blob_key:
            return current.with_tier(StorageTier.HOT)

        body = self._fetch_blob(current.blob_key)
        record = self.ledger.store_content(record_id, body, current.data)
        RECORD_WRITES.labels(StorageTier.HOT.value).inc()
        self._log.info("content_promoted", record_id=record_id, version=record.version)
        return record.with_tier(StorageTier.HOT)

    def rollback(self, record_id: str, target_version: int) -> ContentRecord | None:
        """Réécrit le contenu d'une version antérieure comme nouvelle version."""
        target = self.get(record_id, target_version, track_access=False)
        if target is None:
            return None
        self._log.info("content_rollback", record_id=record_id, target_version=target_version)
        return self.store(record_id, target.content)

    def store_with_diff(self, record_id: str, content: str) -> DiffStorageResult:
        """Écrit une version en mesurant le diff avec la précédente."""
        existing = self.get(record_id, track_access=False)
        diff = compute_diff(existing.content, content) if existing else None
        return DiffStorageResult(record=self.store(record_id, content), diff=diff)

    def delete_versions(self, record_id: str, versions: Iterable[int]) -> int:
        """Suppression physique idempotente de versions historiques."""
        return self.ledger.delete_versions(record_id, versions)

    def store_metadata(self, rows: list[dict[str, Any]]) -> int:
        return self.ledger.store_metadata(rows)

    # ---- reads ----------------------------------------------------------

    def get(
        self,
        record_id: str,
        version: int | None = None,
        *,
        hydrate: bool = True,
        track_access: bool = True,
    ) -> ContentRecord | None:
        """Retourne la dernière version (ou une version précise), corps hydraté.

        Raises:
            BlobNotFoundError: le blob référencé est absent du blob store.
        """
        record = self.ledger.get_content(record_id, version)
        if record is None:
            return None
        if track_access:
            self.ledger.record_access(record_id)
        if hydrate and record.blob_key and not record.content:
            record = record.with_content(self._fetch_blob(record.blob_key))
        return record

    def list_records(self) -> list[ContentRecord]:
        """Dernière version de chaque contenu (non hydratée)."""
        return self.ledger.list_content()

    def list_versions(
        self, record_id: str, order_by: OrderBy = "version", limit: int | None = None
    ) -> list[ContentVersion]:
        versions = self.ledger.get_version_history(record_id)
        if order_by == "timestamp":
            versions = sorted(versions, key=lambda v: v.stored_at)
        else:
            versions = sorted(versions, key=lambda v: v.version)
        if limit is not None:
            return versions[:limit]
        return versions

    def diff_versions(
        self, record_id: str, from_version: int, to_version: int
    ) -> VersionDiff | None:
        """Lignes ajoutées/retirées entre deux versions; None si l'une est absente."""
        old = self.get(record_id, from_version, track_access=False)
        new = self.get(record_id, to_version, track_access=False)
        if old is None or new is None:
            return None
        old_lines = old.content.split("\n")
        new_lines = new.content.split("\n")
        old_set, new_set = set(old_lines), set(new_lines)
        return VersionDiff(
            added=[line for line in new_lines if line not in old_set],
            removed=[line for line in old_lines if line not in new_set],
        )

    def classify(self, record: ContentRecord) -> StorageTier:
        return classify(
            record,
            overflow_threshold=self.overflow_threshold,
            hot_access_threshold=self.hot_access_threshold,
            cold_days=self.cold_days,
        )

    def access_stats(self, record_id: str) -> AccessStats | None:
        record = self.ledger.get_content(record_id)
        if record is None:
            return None
        return AccessStats(
            access_count=record.access_count,
            last_accessed=record.last_accessed or record.stored_at,
            tier=self.classify(record),
        )

    def metrics(self) -> StorageMetrics:
        """Agrégats de taille, de types (`$type`) et de tiers sur le namespace."""
        records = self.ledger.list_content()
        ledger_size = self.ledger.get_database_size()
        blob_size = sum(r.size for r in records if r.blob_key)

        count_by_type: dict[str, int] = {}
        tier_counts = {tier.value: 0 for tier in StorageTier}
        for record in records:
            type_name = _type_label(record.data.get("$type"))
            count_by_type[type_name] = count_by_type.get(type_name, 0) + 1
            tier_counts[self.classify(record).value] += 1

        return StorageMetrics(
            ledger_size=ledger_size,
            blob_size=blob_size,
            total_size=ledger_size + blob_size,
            record_count=len(records),
            count_by_type=count_by_type,
            tier_counts=tier_counts,
        )

    def export_metadata(self) -> list[dict[str, Any]]:
        """Lignes plates (identité + frontmatter) pour export analytique."""
        return [
            {
                "id": r.id,
                "hash": r.hash,
                "size": r.size,
                "storedAt": r.stored_at.isoformat(),
                "version": r.version,
                **r.data,
            }
            for r in self.ledger.list_content()
        ]

    # ---- batch ----------------------------------------------------------

    def batch_store(self, items: Iterable[tuple[str, str]]) -> BatchStoreResult:
        result = BatchStoreResult()
        for record_id, content in items:
            try:
                result.records.append(self.store(record_id, content))
            except Exception as exc:
                self._log.warning("batch_store_failed", record_id=record_id, error=str(exc))
                result.failed[record_id] = str(exc)
        return result

    def batch_get(self, record_ids: Iterable[str]) -> BatchGetResult:
        result = BatchGetResult()
        for record_id in record_ids:
            try:
                result.records[record_id] = self.get(record_id)
            except Exception as exc:
                self._log.warning("batch_get_failed", record_id=record_id, error=str(exc))
                result.failed[record_id] = str(exc)
        return result

    def batch_delete(self, record_ids: Iterable[str]) -> BatchDeleteResult:
        """Supprime des contenus (toutes versions) et leurs blobs."""
        result = BatchDeleteResult()
        for record_id in record_ids:
            try:
                if self._delete_one(record_id):
                    result.deleted += 1
            except Exception as exc:
                self._log.warning("batch_delete_failed", record_id=record_id, error=str(exc))
                result.failed.append(record_id)
        return result

    # ---- internals ------------------------------------------------------

    def blob_keys_for(self, record_id: str, versions: Iterable[int] | None = None) -> set[str]:
        """Clés de blob référencées par les versions données (toutes par défaut)."""
        if versions is None:
            versions = [v.version for v in self.ledger.get_version_history(record_id)]
        keys: set[str] = set()
        for version in versions:
            record = self.ledger.get_content(record_id, version)
            if record is not None and record.blob_key:
                keys.add(record.blob_key)
        return keys

    def _delete_one(self, record_id: str) -> bool:
        if self.ledger.get_content(record_id) is None:
            return False
        for key in self.blob_keys_for(record_id):
            self.blobs.delete(key)
        return self.ledger.delete_content(record_id)

    def _fetch_blob(self, key: str) -> str:
        obj = self.blobs.get(key)
        if obj is None:
            BLOB_FETCH_FAILURES.inc()
            self._log.error("blob_missing", blob_key=key)
            raise BlobNotFoundError(key)
        return obj.text()


def _type_label(value: Any) -> str:
    if value is None or value == "":
        return "unknown"
    if isinstance(value, list):
        return ",".join(str(v) for v in value) if value else "unknown"
    return str(value)
