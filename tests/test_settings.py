"""Tests du chargement de la configuration (fichiers .env et valeurs dérivées)."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdsync.core.container import Container
from mdsync.core.settings import Settings, _resolve_env_file
from tests.fakes import make_settings


def test_env_file_resolution_order(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ENV_FILE", raising=False)
    monkeypatch.setenv("APP_ENV", "staging")
    assert _resolve_env_file() == tmp_path / ".env"

    (tmp_path / ".env.staging").write_text("", encoding="utf-8")
    assert _resolve_env_file() == tmp_path / ".env.staging"

    monkeypatch.setenv("ENV_FILE", str(tmp_path / "custom.env"))
    assert _resolve_env_file() == tmp_path / "custom.env"


def test_settings_read_env_file(tmp_path: Path) -> None:
    env = tmp_path / ".env.custom"
    env.write_text(
        "OVERFLOW_THRESHOLD_BYTES=2048\nGITHUB_WEBHOOK_SECRET=abc\nBLOB_BACKEND=fs\n",
        encoding="utf-8",
    )
    s = Settings(_env_file=str(env))
    assert s.OVERFLOW_THRESHOLD_BYTES == 2048
    assert s.GITHUB_WEBHOOK_SECRET == "abc"
    assert s.BLOB_BACKEND == "fs"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('{"staging": "development"}', {"staging": "development"}),
        ("not json", {}),
        ('["a"]', {}),
        ('{"staging": "stage", "dev": "development"}', {"dev": "development"}),
    ],
)
def test_branch_mappings_decoding(raw, expected) -> None:
    assert make_settings(BRANCH_MAPPINGS_JSON=raw).branch_mappings() == expected


def test_container_requires_database_when_asked() -> None:
    with pytest.raises(RuntimeError):
        Container(make_settings(REQUIRE_DATABASE=True))


def test_container_uses_sql_ledger_and_fs_blobs(tmp_path: Path) -> None:
    container = Container(
        make_settings(
            DATABASE_URL="sqlite+pysqlite:///:memory:",
            BLOB_BACKEND="fs",
            BLOB_DIR=str(tmp_path / "blobs"),
            OVERFLOW_THRESHOLD_BYTES=8,
        )
    )
    assert container.storage_backend == "sql"
    store = container.store("pr-3")
    store.store("doc", "a body larger than eight bytes")
    assert store.get("doc").content == "a body larger than eight bytes"
    assert (tmp_path / "blobs" / "pr-3").is_dir()
    assert container.store("default").get("doc") is None
