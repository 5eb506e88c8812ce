"""
Point d'entrée des webhooks du Git hosting.

La signature est vérifiée sur le corps brut avant tout décodage ou mutation. Les événements non
déployés reçoivent toujours un accusé JSON pour ne pas déclencher les relances de l'émetteur.
"""

import json

import structlog
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from mdsync.api.deps import get_container
from mdsync.api.errors import create_error_response
from mdsync.api.schemas import DeploymentTriggered, WebhookAck
from mdsync.app.metrics import WEBHOOK_EVENTS
from mdsync.core.container import Container
from mdsync.core.http_constants import (
    HEADER_DELIVERY,
    HEADER_EVENT_TYPE,
    HEADER_SIGNATURE,
    HTTP_BAD_REQUEST,
    HTTP_UNAUTHORIZED,
)
from mdsync.domain.errors import InvalidPushEventError
from mdsync.domain.events import PingEvent, PushEvent, classify_webhook, verify_signature

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
container_dep = Depends(get_container)
log = structlog.get_logger(__name__)


def _decode(body: bytes) -> dict | None:
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


@router.post("/github")
async def github_webhook(request: Request, c: Container = container_dep):
    """Reçoit un événement: ping/ignoré -> accusé; push -> déploiement incrémental."""
    event_type = request.headers.get(HEADER_EVENT_TYPE) or "unknown"
    body = await request.body()
    log.info(
        "webhook_received", event=event_type, delivery=request.headers.get(HEADER_DELIVERY)
    )

    secret = c.settings.GITHUB_WEBHOOK_SECRET
    if event_type == "push" and secret:
        if not verify_signature(body, request.headers.get(HEADER_SIGNATURE), secret):
            WEBHOOK_EVENTS.labels(event_type, "rejected").inc()
            log.warning("webhook_signature_invalid", event=event_type)
            return create_error_response(
                HTTP_UNAUTHORIZED, "invalid_signature", "Invalid signature", request
            )

    payload = _decode(body)
    if payload is None and event_type == "push":
        WEBHOOK_EVENTS.labels(event_type, "invalid").inc()
        return create_error_response(
            HTTP_BAD_REQUEST, "invalid_payload", "Payload is not a JSON object", request
        )

    try:
        event = classify_webhook(event_type, payload or {})
    except InvalidPushEventError as err:
        WEBHOOK_EVENTS.labels(event_type, "invalid").inc()
        return create_error_response(HTTP_BAD_REQUEST, "invalid_payload", str(err), request)

    if isinstance(event, PingEvent):
        WEBHOOK_EVENTS.labels("ping", "acknowledged").inc()
        return WebhookAck(event="ping").model_dump()

    if isinstance(event, PushEvent):
        push = event.event
        deployment = await run_in_threadpool(c.orchestrator.handle_push, push)
        result = deployment.result
        WEBHOOK_EVENTS.labels("push", "deployed" if result.success else "failed").inc()
        return DeploymentTriggered(
            branch=push.branch,
            sha=push.sha,
            environment=deployment.environment.name.value,
            namespace=deployment.namespace,
            deployed=result.deployed_files,
            skipped=result.skipped_files,
            deleted=result.deleted_files,
            errors=result.errors,
        ).model_dump()

    WEBHOOK_EVENTS.labels(event.event_type, "ignored").inc()
    return WebhookAck(event=event.event_type).model_dump()
