"""Configuration de logging basée sur structlog.

Objectif du module
------------------
- Fournir une configuration de logs structurés lisibles en développement.
- Permettre un rendu JSON en production (LOG_JSON=true).
- Propager les variables de contexte (request_id) via structlog.contextvars.
"""

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(level: str = "INFO", json_logs: bool = False, stream: TextIO | None = None) -> None:
    """Configure structlog pour produire des logs détaillés et filtrables.

    Les scripts passent `stream=sys.stderr` pour garder stdout aux résultats.
    """
    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, str(level).upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=True,
    )
