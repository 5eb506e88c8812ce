"""
Métriques Prometheus pour l'application.

Ce module définit les métriques du moteur de stockage et de synchronisation (webhooks,
déploiements, écritures par tier) ainsi que le middleware HTTP et l'endpoint `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter(tags=["metrics"])

# HTTP
REQUEST_COUNT = Counter(
    "mdsync_http_requests_total", "HTTP requests by route template", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "mdsync_http_request_duration_seconds", "HTTP latency by route template", ["route"]
)

# Webhooks
WEBHOOK_EVENTS = Counter(
    "webhook_events_total",
    "Webhook deliveries by event type and outcome",
    ["event", "outcome"],
)

# Déploiements
DEPLOY_FILES = Counter(
    "deploy_files_total",
    "Files processed by deployments",
    ["environment", "result"],
)
DEPLOY_LATENCY = Histogram(
    "deploy_duration_seconds",
    "Duration of deployments",
    ["environment", "mode"],
)

# Record store
RECORD_WRITES = Counter(
    "record_store_writes_total",
    "Versions written by the record store",
    ["tier"],
)
BLOB_FETCH_FAILURES = Counter(
    "record_store_blob_fetch_failures_total",
    "Blob fetches that failed during hydration or promotion",
)
GC_VERSIONS_DELETED = Counter(
    "gc_versions_deleted_total",
    "Historical versions physically deleted by garbage collection",
)


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Exposition texte du registre Prometheus par défaut."""
    payload = generate_latest()
    return Response(payload, media_type=CONTENT_TYPE_LATEST)


def _route_label(request: Request) -> str:
    # gabarit de route ("/storage/records/{record_id:path}") plutôt que le chemin brut
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Compte les requêtes et mesure leur durée, étiquetées par gabarit de route."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        label = _route_label(request)
        REQUEST_COUNT.labels(request.method, label, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(label).observe(elapsed)
        return response
