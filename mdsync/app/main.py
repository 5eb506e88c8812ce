"""
Application principale FastAPI.

Ce module assemble les composants du service de synchronisation : middlewares, routes
(santé, webhooks, stockage) et métriques.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, métriques Prometheus)
- Monter les routers
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mdsync.api.routes_health import router as health_router
from mdsync.api.routes_storage import router as storage_router
from mdsync.api.routes_webhook import router as webhook_router
from mdsync.app.metrics import PrometheusMiddleware, metrics_router
from mdsync.core.container import container
from mdsync.core.logging import setup_logging
from mdsync.middlewares.request_id import RequestIDMiddleware


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    container.github.close()


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) selon LOG_LEVEL / LOG_JSON
    - Ajoute les middlewares de traçabilité et de métriques
    - Publie les routes de santé, webhook et stockage
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, lifespan=_lifespan)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(webhook_router)
    app.include_router(storage_router)
    app.include_router(metrics_router)
    return app


app = create_app()
