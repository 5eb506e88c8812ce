# ============================================================
# Module : mdsync/services/orchestrator.py
# Objet  : Orchestration des déploiements déclenchés par les push Git.
# Contexte : le contenu des fichiers est lu via un fetcher injecté; l'orchestrateur
#            ne sait pas lire le dépôt source lui-même.
# Invariants :
#  - Un fichier en échec n'interrompt jamais le traitement des autres.
#  - DeploymentResult.success est faux ssi errors est non vide.
# ============================================================

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from mdsync.app.metrics import DEPLOY_FILES, DEPLOY_LATENCY
from mdsync.core.settings import Settings
from mdsync.domain import deployment
from mdsync.domain.deployment import DeploymentEnvironment, DeploymentResult
from mdsync.domain.events import ParsedPushEvent, changed_files
from mdsync.domain.identity import hash_content
from mdsync.infra.github_client import ApiCallResult, GitHubClient
from mdsync.services.record_store import VersionedRecordStore

FetchContent = Callable[[str], str]
ComputeHash = Callable[[str], str]
StoreFactory = Callable[[str], VersionedRecordStore]


@dataclass(frozen=True)
class PushDeployment:
    environment: DeploymentEnvironment
    namespace: str
    result: DeploymentResult


@dataclass
class PreviewDeployment:
    success: bool
    namespace: str
    preview_url: str | None
    deployed_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    comment: ApiCallResult | None = None


@dataclass(frozen=True)
class PreviewCleanup:
    success: bool
    cleaned_files: int
    failed: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SyncStatus:
    namespace: str
    total_files: int
    last_sync: datetime | None
    pending_changes: int = 0


@dataclass(frozen=True)
class SyncHistoryEntry:
    id: str
    version: int
    hash: str
    stored_at: datetime
    size: int


class DeploymentOrchestrator:
    """Synchronise les documents d'un dépôt Git vers le record store.

    Args:
        store_factory: fournit le record store d'un namespace.
        github: client de l'API Git (statuts, commentaires, lecture de fichiers).
        settings: configuration (extensions, URL de preview, table de branches).
    """

    def __init__(
        self, store_factory: StoreFactory, github: GitHubClient, settings: Settings
    ) -> None:
        self.store_factory = store_factory
        self.github = github
        self.settings = settings
        self.extensions = tuple(settings.DOCUMENT_EXTENSIONS)
        self._log = structlog.get_logger(__name__).bind(component="orchestrator")

    # ---- mapping --------------------------------------------------------

    def map_branch_to_environment(self, branch: str) -> DeploymentEnvironment:
        return deployment.map_branch_to_environment(
            branch,
            custom_mappings=self.settings.branch_mappings(),
            base_url=self.settings.PREVIEW_BASE_URL,
        )

    def namespace_for(self, environment: DeploymentEnvironment) -> str:
        return deployment.namespace_for(environment, self.settings.DEFAULT_NAMESPACE)

    # ---- deploys --------------------------------------------------------

    def full_deploy(
        self,
        event: ParsedPushEvent,
        fetch_content: FetchContent,
        *,
        namespace: str | None = None,
    ) -> DeploymentResult:
        """Écrit tous les documents ajoutés ou modifiés par le push.

        Les fichiers non documentaires sont ignorés (skipped), les documents supprimés sont
        seulement consignés dans ``deleted_files``.
        """
        store = self.store_factory(namespace or self.settings.DEFAULT_NAMESPACE)
        files = changed_files(event)
        result = DeploymentResult()

        touched = list(dict.fromkeys([*files.added, *files.modified]))
        for path in touched:
            if not self._is_document(path):
                result.skipped_files.append(path)
                continue
            try:
                store.store(deployment.content_id_for_path(path), fetch_content(path))
                result.deployed_files.append(path)
            except Exception as exc:
                self._log.warning("deploy_file_failed", path=path, error=str(exc))
                result.errors.append(f"Failed to deploy {path}: {exc}")

        result.deleted_files = [p for p in files.removed if self._is_document(p)]
        return result

    def incremental_deploy(
        self,
        event: ParsedPushEvent,
        fetch_content: FetchContent,
        compute_hash: ComputeHash | None = None,
        *,
        namespace: str | None = None,
    ) -> DeploymentResult:
        """Déploie uniquement les documents dont le contenu a réellement changé.

        Un document modifié dont l'empreinte distante égale celle de la version courante est
        ignoré sans écriture; un document ajouté est toujours écrit.
        """
        store = self.store_factory(namespace or self.settings.DEFAULT_NAMESPACE)
        compute_hash = compute_hash or hash_content
        files = changed_files(event, documents_only=True, extensions=self.extensions)
        result = DeploymentResult()

        for path in files.modified:
            try:
                record_id = deployment.content_id_for_path(path)
                remote = fetch_content(path)
                existing = store.get(record_id, hydrate=False, track_access=False)
                if existing is not None and existing.hash == compute_hash(remote):
                    result.skipped_files.append(path)
                    continue
                store.store(record_id, remote)
                result.deployed_files.append(path)
            except Exception as exc:
                self._log.warning("deploy_file_failed", path=path, error=str(exc))
                result.errors.append(f"Failed to deploy {path}: {exc}")

        for path in files.added:
            try:
                store.store(deployment.content_id_for_path(path), fetch_content(path))
                result.deployed_files.append(path)
            except Exception as exc:
                self._log.warning("deploy_file_failed", path=path, error=str(exc))
                result.errors.append(f"Failed to deploy {path}: {exc}")

        result.deleted_files = list(files.removed)
        return result

    def handle_push(self, event: ParsedPushEvent) -> PushDeployment:
        """Déploie un push sur l'environnement associé à sa branche."""
        environment = self.map_branch_to_environment(event.branch)
        namespace = self.namespace_for(environment)
        log = self._log.bind(
            branch=event.branch, sha=event.sha, environment=environment.name.value
        )
        log.info("push_received", namespace=namespace, commits=len(event.commits))

        self._report(event, environment, "pending", f"Deploying to {environment.name.value}")

        start = time.perf_counter()
        result = self.incremental_deploy(
            event,
            lambda path: self.github.fetch_file(event.repository, path, event.sha),
            namespace=namespace,
        )
        DEPLOY_LATENCY.labels(environment.name.value, "incremental").observe(
            time.perf_counter() - start
        )
        self._count(environment, result)

        if result.success:
            self._report(
                event,
                environment,
                "success",
                f"Deployed {len(result.deployed_files)} files to {environment.name.value}",
            )
        else:
            self._report(
                event, environment, "failure", f"Deployment failed: {len(result.errors)} errors"
            )
        log.info(
            "push_deployed",
            deployed=len(result.deployed_files),
            skipped=len(result.skipped_files),
            errors=len(result.errors),
        )
        return PushDeployment(environment=environment, namespace=namespace, result=result)

    # ---- PR previews ----------------------------------------------------

    def preview_url(self, pr_number: int) -> str | None:
        base = self.settings.PREVIEW_BASE_URL
        if not base:
            return None
        return f"{base.rstrip('/')}/preview/pr-{pr_number}"

    def deploy_pr_preview(
        self,
        pr_number: int,
        repository: str,
        head_sha: str,
        files: Iterable[str],
        fetch_content: FetchContent | None = None,
    ) -> PreviewDeployment:
        """Déploie les documents d'une PR dans son namespace isolé ``pr-N``.

        Sans fetcher explicite, les fichiers sont lus via l'API Git à ``head_sha``. L'URL de
        preview est commentée sur la PR quand elle est connue.
        """
        namespace = f"pr-{pr_number}"
        store = self.store_factory(namespace)
        if fetch_content is None:
            fetch_content = lambda path: self.github.fetch_file(repository, path, head_sha)  # noqa: E731

        deployed: list[str] = []
        errors: list[str] = []
        for path in dict.fromkeys(files):
            if not self._is_document(path):
                continue
            try:
                store.store(deployment.content_id_for_path(path), fetch_content(path))
                deployed.append(path)
            except Exception as exc:
                errors.append(f"Failed to deploy {path}: {exc}")

        url = self.preview_url(pr_number)
        comment = None
        if url and deployed:
            comment = self.github.comment_preview_url(repository, pr_number, url)
        self._log.info(
            "pr_preview_deployed", pr_number=pr_number, deployed=len(deployed), errors=len(errors)
        )
        return PreviewDeployment(
            success=not errors,
            namespace=namespace,
            preview_url=url,
            deployed_files=deployed,
            errors=errors,
            comment=comment,
        )

    def cleanup_pr_preview(self, pr_number: int) -> PreviewCleanup:
        """Supprime tout le contenu du namespace de preview d'une PR."""
        store = self.store_factory(f"pr-{pr_number}")
        ids = [record.id for record in store.list_records()]
        outcome = store.batch_delete(ids)
        self._log.info("pr_preview_cleaned", pr_number=pr_number, cleaned=outcome.deleted)
        return PreviewCleanup(
            success=not outcome.failed, cleaned_files=outcome.deleted, failed=outcome.failed
        )

    # ---- status ---------------------------------------------------------

    def sync_status(self, namespace: str | None = None) -> SyncStatus:
        namespace = namespace or self.settings.DEFAULT_NAMESPACE
        records = self.store_factory(namespace).list_records()
        last_sync = max((r.stored_at for r in records), default=None)
        return SyncStatus(namespace=namespace, total_files=len(records), last_sync=last_sync)

    def sync_history(
        self, limit: int | None = None, namespace: str | None = None
    ) -> list[SyncHistoryEntry]:
        """Versions écrites dans le namespace, de la plus récente à la plus ancienne."""
        store = self.store_factory(namespace or self.settings.DEFAULT_NAMESPACE)
        entries = [
            SyncHistoryEntry(
                id=record.id, version=v.version, hash=v.hash, stored_at=v.stored_at, size=v.size
            )
            for record in store.list_records()
            for v in store.list_versions(record.id)
        ]
        entries.sort(key=lambda e: (e.stored_at, e.version), reverse=True)
        return entries[:limit] if limit is not None else entries

    # ---- internals ------------------------------------------------------

    def _is_document(self, path: str) -> bool:
        return deployment.is_document_file(path, self.extensions)

    def _count(self, environment: DeploymentEnvironment, result: DeploymentResult) -> None:
        name = environment.name.value
        DEPLOY_FILES.labels(name, "deployed").inc(len(result.deployed_files))
        DEPLOY_FILES.labels(name, "skipped").inc(len(result.skipped_files))
        DEPLOY_FILES.labels(name, "failed").inc(len(result.errors))

    def _report(
        self,
        event: ParsedPushEvent,
        environment: DeploymentEnvironment,
        state: str,
        description: str,
    ) -> None:
        if not self.github.token:
            return
        outcome = self.github.report_status(
            event.repository,
            event.sha,
            state,
            self.settings.GITHUB_STATUS_CONTEXT,
            description=description,
            target_url=environment.url,
        )
        if not outcome.success:
            self._log.warning("status_report_failed", state=state, error=outcome.error)
