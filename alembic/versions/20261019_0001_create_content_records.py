# mypy: ignore-errors
"""
Migration Alembic pour créer les tables du ledger SQL.

Crée `content_records` (une ligne par version de contenu et par namespace) et `content_metadata`
(lignes de métadonnées exportées).
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les tables content_records et content_metadata."""
    op.create_table(
        "content_records",
        sa.Column("pk", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("namespace", sa.String(length=128), nullable=False),
        sa.Column("record_id", sa.String(length=512), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("hash", sa.String(length=64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("blob_key", sa.String(length=640), nullable=True),
        sa.Column("stored_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("access_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_accessed", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "namespace", "record_id", "version", name="uq_namespace_record_version"
        ),
    )
    op.create_index(
        "ix_content_records_lookup", "content_records", ["namespace", "record_id"]
    )
    op.create_table(
        "content_metadata",
        sa.Column("pk", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("namespace", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Supprime les tables du ledger."""
    op.drop_table("content_metadata")
    op.drop_index("ix_content_records_lookup", table_name="content_records")
    op.drop_table("content_records")
