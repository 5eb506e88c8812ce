"""
Ledger en mémoire (utilisé pour dev/tests).

Stocke l'historique des versions dans des listes locales, non persistantes. Un verrou par ledger
reproduit la sérialisation par clé du ledger durable.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from mdsync.domain.content import ContentRecord, ContentVersion
from mdsync.domain.identity import content_size, hash_content
from mdsync.infra.ledger.base import Ledger


class InMemoryLedger(Ledger):
    """Ledger mémoire d'un namespace."""

    def __init__(
        self, namespace: str = "default", clock: Callable[[], datetime] | None = None
    ) -> None:
        """Initialise un namespace vide (`clock` fixe l'horodatage, utile en test)."""
        self.namespace = namespace
        self._clock = clock or (lambda: datetime.now(UTC))
        self._rows: dict[str, list[ContentRecord]] = {}
        self._metadata: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def store_content(
        self,
        record_id: str,
        content: str,
        data: dict[str, Any],
        *,
        blob_key: str | None = None,
        content_hash: str | None = None,
        size: int | None = None,
    ) -> ContentRecord:
        """Ajoute une version; les compteurs d'accès sont reportés depuis la précédente."""
        with self._lock:
            history = self._rows.setdefault(record_id, [])
            previous = history[-1] if history else None
            record = ContentRecord(
                id=record_id,
                hash=content_hash or hash_content(content),
                content=content,
                data=dict(data),
                size=size if size is not None else content_size(content),
                version=(previous.version + 1) if previous else 1,
                stored_at=self._clock(),
                blob_key=blob_key,
                access_count=previous.access_count if previous else 0,
                last_accessed=previous.last_accessed if previous else None,
            )
            history.append(record)
            return replace(record)

    def get_content(self, record_id: str, version: int | None = None) -> ContentRecord | None:
        history = self._rows.get(record_id)
        if not history:
            return None
        if version is None:
            return replace(history[-1])
        for record in history:
            if record.version == version:
                return replace(record)
        return None

    def list_content(self) -> list[ContentRecord]:
        return [replace(history[-1]) for history in self._rows.values() if history]

    def get_version_history(self, record_id: str) -> list[ContentVersion]:
        return [
            ContentVersion(version=r.version, hash=r.hash, stored_at=r.stored_at, size=r.size)
            for r in self._rows.get(record_id, [])
        ]

    def store_metadata(self, records: list[dict[str, Any]]) -> int:
        with self._lock:
            self._metadata.extend(dict(r) for r in records)
        return len(records)

    def get_database_size(self) -> int:
        return sum(
            content_size(r.content) for history in self._rows.values() for r in history
        )

    def record_access(self, record_id: str) -> None:
        with self._lock:
            history = self._rows.get(record_id)
            if not history:
                return
            latest = history[-1]
            history[-1] = replace(
                latest, access_count=latest.access_count + 1, last_accessed=self._clock()
            )

    def delete_versions(self, record_id: str, versions: Iterable[int]) -> int:
        targets = set(versions)
        with self._lock:
            history = self._rows.get(record_id, [])
            kept = [r for r in history if r.version not in targets]
            removed = len(history) - len(kept)
            if record_id in self._rows:
                if kept:
                    self._rows[record_id] = kept
                else:
                    del self._rows[record_id]
            return removed

    def delete_content(self, record_id: str) -> bool:
        with self._lock:
            return self._rows.pop(record_id, None) is not None


class InMemoryLedgerProvider:
    """Registre des ledgers mémoire, un par namespace."""

    def __init__(self) -> None:
        self._ledgers: dict[str, InMemoryLedger] = {}
        self._lock = threading.Lock()

    def __call__(self, namespace: str) -> InMemoryLedger:
        with self._lock:
            if namespace not in self._ledgers:
                self._ledgers[namespace] = InMemoryLedger(namespace)
            return self._ledgers[namespace]
