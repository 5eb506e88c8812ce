"""Tests des scripts de garbage collection (versions et blobs orphelins)."""

from __future__ import annotations

import json

import pytest

from mdsync.core.container import Container
from scripts import find_orphans, gc_versions
from tests.fakes import make_settings


@pytest.fixture
def script_container(monkeypatch) -> Container:
    container = Container(make_settings(OVERFLOW_THRESHOLD_BYTES=4))
    monkeypatch.setattr(gc_versions, "container", container)
    monkeypatch.setattr(find_orphans, "container", container)
    return container


def test_gc_versions_dry_run_then_apply(script_container, capsys):
    store = script_container.store()
    for body in ("one", "two", "three"):
        store.store("doc", body)

    capsys.readouterr()
    assert gc_versions.main(["doc", "--retention-days", "0"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["cleaned"] == 2
    assert report["deleted"] == 0
    assert len(store.list_versions("doc")) == 3

    assert gc_versions.main(["doc", "--retention-days", "0", "--apply"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["deleted"] == 2
    assert [v.version for v in store.list_versions("doc")] == [3]


def test_find_orphans_lists_and_deletes(script_container, capsys):
    store = script_container.store()
    store.store("doc", "large body")
    store.blobs.put("ghost-1234", "x")

    capsys.readouterr()
    assert find_orphans.main([]) == 0
    assert json.loads(capsys.readouterr().out) == {"orphans": ["ghost-1234"], "deleted": 0}

    assert find_orphans.main(["--delete"]) == 0
    assert json.loads(capsys.readouterr().out)["deleted"] == 1
    assert store.blobs.head("ghost-1234") is None
