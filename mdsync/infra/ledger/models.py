"""SQLAlchemy models for the SQL ledger (content records and metadata rows)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class ContentRecordORM(Base):
    """Une version immuable d'un contenu dans un namespace."""

    __tablename__ = "content_records"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(128), nullable=False)
    record_id = Column(String(512), nullable=False)
    version = Column(Integer, nullable=False)
    hash = Column(String(64), nullable=False)
    content = Column(Text, nullable=False, default="")
    data = Column(JSON, nullable=False, default=dict)
    size = Column(Integer, nullable=False)
    blob_key = Column(String(640), nullable=True)
    stored_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    access_count = Column(Integer, nullable=False, default=0)
    last_accessed = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("namespace", "record_id", "version", name="uq_namespace_record_version"),
        Index("ix_content_records_lookup", "namespace", "record_id"),
    )


class ContentMetadataORM(Base):
    """Ligne de métadonnées structurées exportée par namespace."""

    __tablename__ = "content_metadata"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(128), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
