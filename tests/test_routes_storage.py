"""Tests des routes d'inspection du stockage, de santé et de métriques."""

from __future__ import annotations

from mdsync.core.http_constants import HTTP_INTERNAL_SERVER_ERROR, HTTP_NOT_FOUND, HTTP_OK

BIG = "z" * (1024 * 1024 + 10)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    assert r.json()["status"] == "ok"
    assert r.json()["ledger"] == "memory"


def test_request_id_is_propagated(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_metrics_endpoint_exposes_prometheus_text(client):
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    assert "http_requests_total" in r.text


def test_get_record_and_versions(client, container):
    store = container.store()
    store.store("docs/guide/intro", "---\ntitle: Intro\n---\nv1")
    store.store("docs/guide/intro", "v2")

    r = client.get("/storage/records/docs/guide/intro")
    assert r.status_code == HTTP_OK
    assert r.json()["content"] == "v2"
    assert r.json()["version"] == 2

    r = client.get("/storage/records/docs/guide/intro", params={"version": 1})
    assert r.json()["data"] == {"title": "Intro"}

    r = client.get("/storage/versions/docs/guide/intro")
    assert [v["version"] for v in r.json()] == [1, 2]


def test_missing_record_is_404(client):
    r = client.get("/storage/records/nope")
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "not_found"


def test_missing_blob_is_reported(client, container):
    store = container.store()
    record = store.store("big", BIG)
    store.blobs.delete(record.blob_key)
    r = client.get("/storage/records/big")
    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["code"] == "blob_not_found"


def test_metrics_and_promote(client, container):
    container.store().store("big", BIG)
    r = client.get("/storage/metrics")
    assert r.json()["record_count"] == 1
    assert r.json()["tier_counts"]["warm"] == 1

    r = client.post("/storage/promote/big")
    assert r.status_code == HTTP_OK
    assert r.json()["tier"] == "hot"
    assert r.json()["version"] == 2
    assert client.post("/storage/promote/ghost").status_code == HTTP_NOT_FOUND


def test_cleanup_plan_dry_run_then_apply(client, container):
    store = container.store()
    for body in ("1", "2", "3"):
        store.store("doc", body)

    r = client.post("/storage/cleanup/doc", params={"retention_days": 0, "min_versions": 1})
    plan = r.json()
    assert plan["cleaned"] == 2
    assert plan["applied"] is False
    assert len(store.list_versions("doc")) == 3

    r = client.post(
        "/storage/cleanup/doc", params={"retention_days": 0, "min_versions": 1, "apply": True}
    )
    assert r.json()["deleted"] == 2
    assert [v.version for v in store.list_versions("doc")] == [3]


def test_sync_status_and_history(client, container):
    container.store().store("a", "1")
    status = client.get("/storage/sync/status").json()
    assert status["total_files"] == 1
    assert status["namespace"] == "default"
    history = client.get("/storage/sync/history", params={"limit": 5}).json()
    assert history[0]["id"] == "a"
