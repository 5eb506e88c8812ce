# ============================================================
# Module : mdsync/infra/ledger/sql.py
# Objet  : Ledger durable adossé à SQLAlchemy (une ligne par version).
# Notes  : La sérialisation par clé est celle de la base (contrainte
#          d'unicité namespace/record_id/version).
# ============================================================

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from mdsync.domain.content import ContentRecord, ContentVersion
from mdsync.domain.errors import LedgerError
from mdsync.domain.identity import content_size, hash_content
from mdsync.infra.ledger.base import Ledger
from mdsync.infra.ledger.db import get_session_factory, session_scope
from mdsync.infra.ledger.models import ContentMetadataORM, ContentRecordORM


def _aware(value: datetime | None) -> datetime | None:
    """SQLite renvoie des datetimes naïfs: on les rattache à UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _json_safe(data: dict[str, Any]) -> dict[str, Any]:
    # Les dates YAML du frontmatter ne sont pas sérialisables en JSON natif
    return json.loads(json.dumps(data, default=str))


def _row_to_record(row: ContentRecordORM) -> ContentRecord:
    return ContentRecord(
        id=row.record_id,
        hash=row.hash,
        content=row.content or "",
        data=dict(row.data or {}),
        size=row.size,
        version=row.version,
        stored_at=_aware(row.stored_at),
        blob_key=row.blob_key,
        access_count=row.access_count or 0,
        last_accessed=_aware(row.last_accessed),
    )


class SqlLedger(Ledger):
    """Ledger SQL d'un namespace."""

    def __init__(self, engine: Engine, namespace: str = "default") -> None:
        """Construit le ledger avec un moteur SQLAlchemy."""
        self.namespace = namespace
        self._factory = get_session_factory(engine)

    def _scoped(self, stmt):
        return stmt.where(ContentRecordORM.namespace == self.namespace)

    def _latest_row(self, session, record_id: str) -> ContentRecordORM | None:
        stmt = (
            self._scoped(select(ContentRecordORM))
            .where(ContentRecordORM.record_id == record_id)
            .order_by(ContentRecordORM.version.desc())
            .limit(1)
        )
        return session.execute(stmt).scalars().first()

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
        """Insère une nouvelle version. Lève LedgerError sur conflit de version."""
        try:
            with session_scope(self._factory) as session:
                previous = self._latest_row(session, record_id)
                row = ContentRecordORM(
                    namespace=self.namespace,
                    record_id=record_id,
                    version=(previous.version + 1) if previous else 1,
                    hash=content_hash or hash_content(content),
                    content=content,
                    data=_json_safe(data),
                    size=size if size is not None else content_size(content),
                    blob_key=blob_key,
                    stored_at=datetime.now(UTC),
                    access_count=previous.access_count if previous else 0,
                    last_accessed=previous.last_accessed if previous else None,
                )
                session.add(row)
                session.flush()
                return _row_to_record(row)
        except IntegrityError as exc:
            raise LedgerError(f"concurrent write on {record_id}") from exc
        except SQLAlchemyError as exc:
            raise LedgerError(str(exc)) from exc

    def get_content(self, record_id: str, version: int | None = None) -> ContentRecord | None:
        with session_scope(self._factory) as session:
            if version is None:
                row = self._latest_row(session, record_id)
            else:
                stmt = self._scoped(select(ContentRecordORM)).where(
                    ContentRecordORM.record_id == record_id,
                    ContentRecordORM.version == version,
                )
                row = session.execute(stmt).scalars().first()
            return _row_to_record(row) if row else None

    def list_content(self) -> list[ContentRecord]:
        with session_scope(self._factory) as session:
            latest = (
                self._scoped(
                    select(
                        ContentRecordORM.record_id,
                        func.max(ContentRecordORM.version).label("version"),
                    )
                )
                .group_by(ContentRecordORM.record_id)
                .subquery()
            )
            stmt = (
                self._scoped(select(ContentRecordORM))
                .join(
                    latest,
                    (ContentRecordORM.record_id == latest.c.record_id)
                    & (ContentRecordORM.version == latest.c.version),
                )
                .order_by(ContentRecordORM.record_id)
            )
            return [_row_to_record(r) for r in session.execute(stmt).scalars().all()]

    def get_version_history(self, record_id: str) -> list[ContentVersion]:
        with session_scope(self._factory) as session:
            stmt = (
                self._scoped(
                    select(
                        ContentRecordORM.version,
                        ContentRecordORM.hash,
                        ContentRecordORM.stored_at,
                        ContentRecordORM.size,
                    )
                )
                .where(ContentRecordORM.record_id == record_id)
                .order_by(ContentRecordORM.version)
            )
            return [
                ContentVersion(version=v, hash=h, stored_at=_aware(at), size=s)
                for v, h, at, s in session.execute(stmt).all()
            ]

    def store_metadata(self, records: list[dict[str, Any]]) -> int:
        with session_scope(self._factory) as session:
            session.add_all(
                ContentMetadataORM(namespace=self.namespace, payload=_json_safe(r)) for r in records
            )
        return len(records)

    def get_database_size(self) -> int:
        with session_scope(self._factory) as session:
            stmt = self._scoped(select(func.coalesce(func.sum(ContentRecordORM.size), 0))).where(
                ContentRecordORM.blob_key.is_(None)
            )
            return int(session.execute(stmt).scalar_one())

    def record_access(self, record_id: str) -> None:
        with session_scope(self._factory) as session:
            row = self._latest_row(session, record_id)
            if row is None:
                return
            session.execute(
                update(ContentRecordORM)
                .where(ContentRecordORM.pk == row.pk)
                .values(
                    access_count=ContentRecordORM.access_count + 1,
                    last_accessed=datetime.now(UTC),
                )
            )

    def delete_versions(self, record_id: str, versions: Iterable[int]) -> int:
        targets = list(versions)
        if not targets:
            return 0
        with session_scope(self._factory) as session:
            result = session.execute(
                self._scoped(delete(ContentRecordORM)).where(
                    ContentRecordORM.record_id == record_id,
                    ContentRecordORM.version.in_(targets),
                )
            )
            return result.rowcount or 0

    def delete_content(self, record_id: str) -> bool:
        with session_scope(self._factory) as session:
            result = session.execute(
                self._scoped(delete(ContentRecordORM)).where(
                    ContentRecordORM.record_id == record_id
                )
            )
            return bool(result.rowcount)


class SqlLedgerProvider:
    """Fournit un SqlLedger par namespace sur un moteur partagé."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def __call__(self, namespace: str) -> SqlLedger:
        return SqlLedger(self.engine, namespace)
