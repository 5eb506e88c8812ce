"""Tests des blob stores mémoire et filesystem."""

from __future__ import annotations

import pytest

from mdsync.infra.blobs.fs import FsBlobStore
from mdsync.infra.blobs.memory import InMemoryBlobStore


@pytest.fixture(params=["memory", "fs"])
def blobs(request, tmp_path):
    if request.param == "memory":
        return InMemoryBlobStore()
    return FsBlobStore(tmp_path / "blobs")


def test_put_get_roundtrip_with_text(blobs):
    result = blobs.put("docs/guide/intro-0123456789abcdef", "héllo")
    assert result.key == "docs/guide/intro-0123456789abcdef"
    assert result.size == len("héllo".encode())
    obj = blobs.get("docs/guide/intro-0123456789abcdef")
    assert obj.text() == "héllo"
    assert obj.size == result.size


def test_missing_key_is_none(blobs):
    assert blobs.get("nope") is None
    assert blobs.head("nope") is None


def test_head_and_delete(blobs):
    blobs.put("k", b"data")
    assert blobs.head("k") is not None
    blobs.delete("k")
    blobs.delete("k")
    assert blobs.head("k") is None


def test_list_keys_returns_original_keys(blobs):
    blobs.put("a/b-1", "x")
    blobs.put("c-2", "y")
    assert sorted(blobs.list_keys()) == ["a/b-1", "c-2"]


def test_overwrite_replaces_content(blobs):
    blobs.put("k", "one")
    blobs.put("k", "two")
    assert blobs.get("k").text() == "two"


def test_fs_keys_stay_under_base_dir(tmp_path):
    store = FsBlobStore(tmp_path / "root")
    store.put("../../escape-0000", "x")
    assert not (tmp_path / "escape-0000").exists()
    assert store.list_keys() == ["../../escape-0000"]


def test_fs_accepts_keys_longer_than_a_file_name(tmp_path):
    store = FsBlobStore(tmp_path / "root")
    key = "/".join(["section.v2"] * 40) + "-0123456789abcdef"
    assert len(key.encode()) > 255
    store.put(key, "deep")
    assert store.get(key).text() == "deep"
    assert store.list_keys() == [key]
    store.delete(key)
    assert store.list_keys() == []
