"""Enveloppe d'erreur standard des réponses JSON de l'API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    request_id: str | None = None
    details: dict[str, Any] | None = None


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    request: Request | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Construit une réponse d'erreur JSON (jamais d'exception remontée à l'émetteur)."""
    envelope = ErrorEnvelope(
        code=code,
        message=message,
        request_id=getattr(request.state, "request_id", None) if request else None,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "request_id": envelope.request_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )
