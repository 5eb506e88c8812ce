# ============================================================
# Tests : tests/test_record_store.py
# Objet  : Store versionné (ledger mémoire + blob store mémoire).
# ============================================================
"""Tests du record store: versions, débordement, promotion, rollback, lots et métriques."""

from __future__ import annotations

import pytest

from mdsync.domain.content import StorageTier
from mdsync.domain.errors import BlobNotFoundError
from mdsync.domain.identity import blob_key_for, hash_content
from mdsync.infra.blobs.memory import InMemoryBlobStore
from mdsync.infra.ledger.memory import InMemoryLedger
from mdsync.services.record_store import VersionedRecordStore

from tests.fakes import FailingBlobStore

THRESHOLD = 64
BIG = "---\ntitle: Big\n---\n" + "x" * 200


def _store(blobs=None) -> VersionedRecordStore:
    return VersionedRecordStore(
        InMemoryLedger("default"), blobs or InMemoryBlobStore(), overflow_threshold=THRESHOLD
    )


def test_store_then_get_returns_same_content_and_hash():
    store = _store()
    written = store.store("docs/a", "---\ntitle: A\n---\nhello")
    assert written.version == 1
    assert written.tier is StorageTier.HOT
    assert written.data == {"title": "A"}

    record = store.get("docs/a")
    assert record.content == "---\ntitle: A\n---\nhello"
    assert record.hash == hash_content(record.content)


def test_store_accepts_body_with_impossible_frontmatter_date():
    store = _store()
    body = "---\ntitle: A\ndate: 2026-02-30\n---\nhello"
    written = store.store("doc", body)
    assert written.version == 1
    assert written.data == {}
    assert store.get("doc").content == body


def test_versions_increase_and_history_is_immutable():
    store = _store()
    store.store("doc", "v1")
    second = store.store("doc", "v2")
    assert second.version == 2
    assert store.get("doc", 1).content == "v1"
    assert store.get("doc").content == "v2"
    assert [v.version for v in store.list_versions("doc")] == [1, 2]


def test_absent_record_is_none():
    store = _store()
    assert store.get("missing") is None
    assert store.promote("missing") is None
    assert store.rollback("missing", 1) is None
    assert store.access_stats("missing") is None


def test_large_content_overflows_to_blob_store():
    blobs = InMemoryBlobStore()
    store = _store(blobs)
    written = store.store("big", BIG)
    key = blob_key_for("big", hash_content(BIG))

    assert written.tier is StorageTier.WARM
    assert written.blob_key == key
    assert blobs.get(key).text() == BIG

    raw = store.ledger.get_content("big")
    assert raw.content == ""
    assert raw.size == len(BIG)
    assert raw.data == {"title": "Big"}

    assert store.get("big").content == BIG
    assert store.get("big", hydrate=False).content == ""


def test_missing_blob_is_fatal_on_read_and_promote():
    blobs = InMemoryBlobStore()
    store = _store(blobs)
    written = store.store("big", BIG)
    blobs.delete(written.blob_key)

    with pytest.raises(BlobNotFoundError):
        store.get("big")
    with pytest.raises(BlobNotFoundError):
        store.promote("big")


def test_promote_moves_body_back_into_ledger():
    store = _store()
    store.store("big", BIG)
    promoted = store.promote("big")

    assert promoted.version == 2
    assert promoted.tier is StorageTier.HOT
    assert promoted.blob_key is None
    assert store.ledger.get_content("big").content == BIG


def test_promote_inline_record_is_noop():
    store = _store()
    store.store("doc", "small")
    promoted = store.promote("doc")
    assert promoted.version == 1
    assert len(store.list_versions("doc")) == 1


def test_rollback_writes_old_content_as_new_version():
    store = _store()
    store.store("doc", "first")
    store.store("doc", "second")
    restored = store.rollback("doc", 1)
    assert restored.version == 3
    assert store.get("doc").content == "first"
    assert store.rollback("doc", 99) is None


def test_list_versions_ordering_and_limit():
    store = _store()
    for body in ("a", "b", "c"):
        store.store("doc", body)
    assert [v.version for v in store.list_versions("doc", limit=2)] == [1, 2]
    assert [v.version for v in store.list_versions("doc", order_by="timestamp")] == [1, 2, 3]
    assert store.list_versions("doc", limit=0) == []


def test_get_tracks_access_unless_disabled():
    store = _store()
    store.store("doc", "body")
    store.get("doc")
    store.get("doc")
    store.get("doc", track_access=False)
    stats = store.access_stats("doc")
    assert stats.access_count == 2
    assert stats.tier is StorageTier.HOT


def test_store_with_diff_reports_changes():
    store = _store()
    first = store.store_with_diff("doc", "a\nb")
    assert first.diff is None
    second = store.store_with_diff("doc", "a\nB")
    assert second.record.version == 2
    assert second.diff_stored
    assert store.store_with_diff("doc", "a\nB").diff_stored is False


def test_diff_versions_is_set_based():
    store = _store()
    store.store("doc", "a\nb\nc")
    store.store("doc", "a\nc\nd")
    diff = store.diff_versions("doc", 1, 2)
    assert diff.added == ["d"]
    assert diff.removed == ["b"]
    assert store.diff_versions("doc", 1, 5) is None


def test_metrics_aggregate_sizes_types_and_tiers():
    store = _store()
    store.store("post", "---\n'@type': BlogPost\n---\nhi")
    store.store("page", "---\n$type: Page\n---\nyo")
    store.store("big", BIG)
    store.store("plain", "no frontmatter")

    m = store.metrics()
    assert m.record_count == 4
    assert m.blob_size == len(BIG)
    assert m.total_size == m.ledger_size + m.blob_size
    assert m.count_by_type == {"BlogPost": 1, "Page": 1, "unknown": 2}
    assert m.tier_counts["warm"] == 1
    assert m.tier_counts["hot"] == 3


def test_batch_store_isolates_failures():
    store = _store(FailingBlobStore(failing_prefixes=("bad",)))
    result = store.batch_store([("ok", "small"), ("bad", BIG), ("ok2", BIG)])
    assert [r.id for r in result.records] == ["ok", "ok2"]
    assert list(result.failed) == ["bad"]


def test_batch_get_and_delete():
    blobs = InMemoryBlobStore()
    store = _store(blobs)
    store.store("a", "one")
    store.store("b", BIG)
    store.store("b", BIG + "!")

    got = store.batch_get(["a", "b", "missing"])
    assert got.records["a"].content == "one"
    assert got.records["b"].content == BIG + "!"
    assert got.records["missing"] is None

    deleted = store.batch_delete(["a", "b", "missing"])
    assert deleted.deleted == 2
    assert deleted.failed == []
    assert store.get("b") is None
    assert blobs.list_keys() == []


def test_export_and_store_metadata():
    store = _store()
    store.store("doc", "---\ntitle: T\n---\nbody")
    rows = store.export_metadata()
    assert rows[0]["id"] == "doc"
    assert rows[0]["title"] == "T"
    assert rows[0]["version"] == 1
    assert "storedAt" in rows[0]
    assert store.store_metadata(rows) == 1
