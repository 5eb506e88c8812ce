"""
Routes d'inspection du stockage versionné.

Regroupe les endpoints `/storage` (métriques, lecture de contenus et de versions, plan de
nettoyage, état de synchronisation). Les identifiants de contenu contiennent des `/`, d'où les
paramètres de type `path` en fin d'URL.
"""

from fastapi import APIRouter, Depends, Request

from mdsync.api.deps import get_container
from mdsync.api.errors import create_error_response
from mdsync.api.schemas import (
    CleanupPlanOut,
    RecordOut,
    StorageMetricsOut,
    SyncStatusOut,
    VersionOut,
)
from mdsync.core.container import Container
from mdsync.core.http_constants import HTTP_INTERNAL_SERVER_ERROR, HTTP_NOT_FOUND
from mdsync.domain.content import ContentRecord
from mdsync.domain.errors import BlobNotFoundError
from mdsync.services.record_store import VersionedRecordStore

router = APIRouter(prefix="/storage", tags=["storage"])
container_dep = Depends(get_container)


def _record_out(store: VersionedRecordStore, record: ContentRecord, with_content: bool) -> RecordOut:
    tier = record.tier or store.classify(record)
    return RecordOut(
        id=record.id,
        hash=record.hash,
        version=record.version,
        size=record.size,
        stored_at=record.stored_at,
        tier=tier.value,
        data=record.data,
        content=record.content if with_content else None,
    )


def _not_found(request: Request, record_id: str):
    return create_error_response(
        HTTP_NOT_FOUND, "not_found", f"Content not found: {record_id}", request
    )


@router.get("/metrics", response_model=StorageMetricsOut)
def storage_metrics(namespace: str | None = None, c: Container = container_dep):
    store = c.store(namespace)
    m = store.metrics()
    return StorageMetricsOut(
        namespace=store.namespace,
        ledger_size=m.ledger_size,
        blob_size=m.blob_size,
        total_size=m.total_size,
        record_count=m.record_count,
        count_by_type=m.count_by_type,
        tier_counts=m.tier_counts,
    )


@router.get("/records", response_model=list[RecordOut])
def list_records(namespace: str | None = None, c: Container = container_dep):
    store = c.store(namespace)
    return [_record_out(store, r, with_content=False) for r in store.list_records()]


@router.get("/records/{record_id:path}")
def get_record(
    record_id: str,
    request: Request,
    version: int | None = None,
    namespace: str | None = None,
    c: Container = container_dep,
):
    """Retourne un contenu hydraté (dernière version ou version demandée)."""
    store = c.store(namespace)
    try:
        record = store.get(record_id, version)
    except BlobNotFoundError as err:
        return create_error_response(
            HTTP_INTERNAL_SERVER_ERROR, "blob_not_found", str(err), request
        )
    if record is None:
        return _not_found(request, record_id)
    return _record_out(store, record, with_content=True)


@router.get("/versions/{record_id:path}", response_model=list[VersionOut])
def list_versions(
    record_id: str,
    order_by: str = "version",
    limit: int | None = None,
    namespace: str | None = None,
    c: Container = container_dep,
):
    order = "timestamp" if order_by == "timestamp" else "version"
    versions = c.store(namespace).list_versions(record_id, order_by=order, limit=limit)
    return [
        VersionOut(version=v.version, hash=v.hash, stored_at=v.stored_at, size=v.size)
        for v in versions
    ]


@router.post("/promote/{record_id:path}")
def promote_record(
    record_id: str, request: Request, namespace: str | None = None, c: Container = container_dep
):
    store = c.store(namespace)
    try:
        record = store.promote(record_id)
    except BlobNotFoundError as err:
        return create_error_response(
            HTTP_INTERNAL_SERVER_ERROR, "blob_not_found", str(err), request
        )
    if record is None:
        return _not_found(request, record_id)
    return _record_out(store, record, with_content=False)


@router.post("/cleanup/{record_id:path}", response_model=CleanupPlanOut)
def cleanup_versions(
    record_id: str,
    apply: bool = False,
    retention_days: int | None = None,
    min_versions: int | None = None,
    namespace: str | None = None,
    c: Container = container_dep,
):
    """Calcule (et applique si `apply=true`) le plan de rétention d'un contenu."""
    gc = c.garbage_collector(namespace)
    plan = gc.plan_cleanup(record_id, retention_days=retention_days, min_versions=min_versions)
    deleted = gc.apply_cleanup(plan) if apply else 0
    return CleanupPlanOut(
        record_id=record_id,
        cleaned=plan.cleaned,
        retained=plan.retained,
        to_clean=[v.version for v in plan.to_clean],
        to_retain=[v.version for v in plan.to_retain],
        applied=apply,
        deleted=deleted,
    )


@router.get("/sync/status", response_model=SyncStatusOut)
def sync_status(namespace: str | None = None, c: Container = container_dep):
    status = c.orchestrator.sync_status(namespace)
    return SyncStatusOut(
        namespace=status.namespace,
        total_files=status.total_files,
        last_sync=status.last_sync,
        pending_changes=status.pending_changes,
    )


@router.get("/sync/history")
def sync_history(limit: int | None = None, namespace: str | None = None, c: Container = container_dep):
    return [
        {
            "id": e.id,
            "version": e.version,
            "hash": e.hash,
            "stored_at": e.stored_at.isoformat(),
            "size": e.size,
        }
        for e in c.orchestrator.sync_history(limit=limit, namespace=namespace)
    ]
