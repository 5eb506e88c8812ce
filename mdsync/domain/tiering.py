"""Politique de tiering: classe un enregistrement en hot/warm/cold.

L'ordre des tests compte: la taille et l'emplacement physique priment sur la récence d'accès.
La promotion warm -> hot est une opération explicite du record store, jamais automatique.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from mdsync.domain.content import ContentRecord, StorageTier
from mdsync.domain.identity import OVERFLOW_THRESHOLD

HOT_ACCESS_THRESHOLD = 50
COLD_DAYS_THRESHOLD = 30


def classify(
    record: ContentRecord,
    *,
    now: datetime | None = None,
    overflow_threshold: int = OVERFLOW_THRESHOLD,
    hot_access_threshold: int = HOT_ACCESS_THRESHOLD,
    cold_days: int = COLD_DAYS_THRESHOLD,
) -> StorageTier:
    """Retourne le niveau de stockage d'un enregistrement (fonction pure)."""
    if record.size > overflow_threshold or record.blob_key:
        return StorageTier.WARM
    if record.access_count >= hot_access_threshold:
        return StorageTier.HOT
    if record.last_accessed is not None:
        current = now or datetime.now(UTC)
        if current - record.last_accessed > timedelta(days=cold_days):
            return StorageTier.COLD
    return StorageTier.HOT
