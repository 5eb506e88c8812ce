"""
Conteneur d'injection de dépendances.

Instancie les collaborateurs (ledger, blob store, client Git) à partir de la configuration et
expose un singleton `container` utilisé par l'API et les scripts.
"""

import os
import threading

import structlog

from mdsync.core.logging import setup_logging
from mdsync.core.settings import Settings, get_settings
from mdsync.infra.blobs.base import BlobStore
from mdsync.infra.blobs.fs import FsBlobStore
from mdsync.infra.blobs.memory import InMemoryBlobStore
from mdsync.infra.github_client import GitHubClient
from mdsync.infra.ledger.db import create_schema, get_engine
from mdsync.infra.ledger.memory import InMemoryLedgerProvider
from mdsync.infra.ledger.sql import SqlLedgerProvider
from mdsync.services.garbage_collector import GarbageCollector
from mdsync.services.orchestrator import DeploymentOrchestrator
from mdsync.services.record_store import VersionedRecordStore

log = structlog.get_logger(__name__)


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        setup_logging(self.settings.LOG_LEVEL, json_logs=self.settings.LOG_JSON)
        self._blob_stores: dict[str, BlobStore] = {}
        self._lock = threading.Lock()

        if self.settings.DATABASE_URL:
            try:
                engine = get_engine(self.settings.DATABASE_URL)
                create_schema(engine)
                self.ledgers = SqlLedgerProvider(engine)
                self.storage_backend = "sql"
            except Exception as err:
                if self.settings.REQUIRE_DATABASE:
                    raise RuntimeError("Database required but unavailable") from err
                log.warning("ledger_fallback_memory", error=str(err))
                self.ledgers = InMemoryLedgerProvider()
                self.storage_backend = "memory-fallback"
        else:
            if self.settings.REQUIRE_DATABASE:
                raise RuntimeError("Database required but DATABASE_URL not set")
            self.ledgers = InMemoryLedgerProvider()
            self.storage_backend = "memory"

        self.github = GitHubClient(
            base_url=self.settings.GITHUB_API_URL, token=self.settings.GITHUB_TOKEN
        )
        self.orchestrator = DeploymentOrchestrator(self.store, self.github, self.settings)

    def blobs(self, namespace: str) -> BlobStore:
        """Blob store isolé par namespace (sous-dossier en mode fs)."""
        with self._lock:
            if namespace not in self._blob_stores:
                if self.settings.BLOB_BACKEND == "fs":
                    base_dir = os.path.join(self.settings.BLOB_DIR, namespace)
                    self._blob_stores[namespace] = FsBlobStore(base_dir)
                else:
                    self._blob_stores[namespace] = InMemoryBlobStore()
            return self._blob_stores[namespace]

    def store(self, namespace: str | None = None) -> VersionedRecordStore:
        namespace = namespace or self.settings.DEFAULT_NAMESPACE
        return VersionedRecordStore(
            self.ledgers(namespace),
            self.blobs(namespace),
            overflow_threshold=self.settings.OVERFLOW_THRESHOLD_BYTES,
            hot_access_threshold=self.settings.HOT_ACCESS_THRESHOLD,
            cold_days=self.settings.COLD_DAYS_THRESHOLD,
        )

    def garbage_collector(self, namespace: str | None = None) -> GarbageCollector:
        return GarbageCollector(
            self.store(namespace),
            retention_days=self.settings.RETENTION_DAYS,
            min_versions=self.settings.MIN_VERSIONS,
        )


container = Container()
