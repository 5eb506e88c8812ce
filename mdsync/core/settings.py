"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import json
import os
from pathlib import Path

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdsync.domain.deployment import EnvironmentName


def _resolve_env_file() -> Path:
    """Retourne le fichier .env applicable (ENV_FILE > .env.{APP_ENV} > .env)."""
    explicit = os.getenv("ENV_FILE")
    if explicit:
        return Path(explicit)
    cwd = Path.cwd()
    specific = cwd / f".env.{os.getenv('APP_ENV', 'dev')}"
    if specific.exists():
        return specific
    return cwd / ".env"


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "mdsync"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Ledger (SQL si DATABASE_URL, sinon mémoire)
    DATABASE_URL: str | None = None
    REQUIRE_DATABASE: bool = False
    DEFAULT_NAMESPACE: str = "default"

    # Blob store: "memory" | "fs"
    BLOB_BACKEND: str = "memory"
    BLOB_DIR: str = "./var/blobs"

    # Politique de stockage
    OVERFLOW_THRESHOLD_BYTES: int = 1024 * 1024
    HOT_ACCESS_THRESHOLD: int = 50
    COLD_DAYS_THRESHOLD: int = 30
    RETENTION_DAYS: int = 30
    MIN_VERSIONS: int = 1
    DOCUMENT_EXTENSIONS: list[str] = [".mdx"]

    # Git hosting
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: str | None = None
    GITHUB_WEBHOOK_SECRET: str | None = None
    GITHUB_STATUS_CONTEXT: str = "mdsync/deploy"
    PREVIEW_BASE_URL: str | None = None
    # Table explicite branche -> environnement (JSON, ex: {"staging": "development"})
    BRANCH_MAPPINGS_JSON: str = "{}"

    def branch_mappings(self) -> dict[str, str]:
        """Décode BRANCH_MAPPINGS_JSON; une valeur invalide donne une table vide.

        Les entrées visant un environnement inconnu sont ignorées (avertissement structlog):
        la branche retombe alors sur les règles par défaut.
        """
        try:
            raw = json.loads(self.BRANCH_MAPPINGS_JSON or "{}")
        except json.JSONDecodeError:
            return {}
        if not isinstance(raw, dict):
            return {}
        known = {env.value for env in EnvironmentName}
        mappings: dict[str, str] = {}
        for branch, env in raw.items():
            if str(env) not in known:
                structlog.get_logger(__name__).warning(
                    "branch_mapping_ignored", branch=str(branch), environment=str(env)
                )
                continue
            mappings[str(branch)] = str(env)
        return mappings


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
