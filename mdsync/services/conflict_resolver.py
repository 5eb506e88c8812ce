# ============================================================
# Module : mdsync/services/conflict_resolver.py
# Objet  : Résolution des éditions concurrentes local / distant.
# Contexte : la stratégie "merge" exige une version de base stockée; à défaut,
#            repli explicite sur le contenu distant.
# ============================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import structlog

from mdsync.domain.content import ContentRecord
from mdsync.domain.merge import three_way_merge
from mdsync.services.record_store import VersionedRecordStore

Strategy = Literal["local", "remote", "merge"]

NO_BASE_NOTE = "Could not perform merge - base version not found"


@dataclass(frozen=True)
class LocalContent:
    id: str
    content: str
    version: int
    hash: str
    base_version: int | None = None


@dataclass(frozen=True)
class RemoteContent:
    content: str
    sha: str


@dataclass(frozen=True)
class ConflictResolutionResult:
    has_conflict: bool
    strategy: Strategy
    resolved_content: str
    has_unresolved_conflicts: bool = False
    conflict_markers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StoredResolution:
    """Résolution + version écrite; ``blocked`` si l'écriture a été refusée."""

    resolution: ConflictResolutionResult
    stored: ContentRecord | None = None
    blocked: bool = False


class ConflictResolver:
    def __init__(self, store: VersionedRecordStore) -> None:
        self.store = store
        self._log = structlog.get_logger(__name__).bind(component="conflict_resolver")

    def resolve(
        self, local: LocalContent, remote: RemoteContent, strategy: Strategy = "remote"
    ) -> ConflictResolutionResult:
        """Choisit le contenu retenu selon la stratégie.

        Un contenu identique des deux côtés n'est jamais un conflit.
        """
        if local.content == remote.content:
            return ConflictResolutionResult(
                has_conflict=False, strategy=strategy, resolved_content=local.content
            )
        if strategy == "local":
            return ConflictResolutionResult(
                has_conflict=True, strategy="local", resolved_content=local.content
            )
        if strategy == "remote":
            return ConflictResolutionResult(
                has_conflict=True, strategy="remote", resolved_content=remote.content
            )

        if local.base_version is not None:
            base = self.store.get(local.id, local.base_version, track_access=False)
            if base is not None:
                merged = three_way_merge(base.content, local.content, remote.content)
                return ConflictResolutionResult(
                    has_conflict=True,
                    strategy="merge",
                    resolved_content=merged.merged,
                    has_unresolved_conflicts=merged.has_conflicts,
                    conflict_markers=list(merged.conflicts),
                )

        self._log.warning(
            "merge_without_base", record_id=local.id, base_version=local.base_version
        )
        return ConflictResolutionResult(
            has_conflict=True,
            strategy=strategy,
            resolved_content=remote.content,
            has_unresolved_conflicts=True,
            conflict_markers=[NO_BASE_NOTE],
        )

    def resolve_and_store(
        self,
        local: LocalContent,
        remote: RemoteContent,
        strategy: Strategy = "remote",
        *,
        allow_unresolved: bool = False,
    ) -> StoredResolution:
        """Résout puis écrit le contenu retenu.

        Tant que des conflits restent non résolus, rien n'est écrit sauf ``allow_unresolved``.
        """
        resolution = self.resolve(local, remote, strategy)
        if resolution.has_unresolved_conflicts and not allow_unresolved:
            self._log.info("resolution_blocked", record_id=local.id, strategy=strategy)
            return StoredResolution(resolution=resolution, blocked=True)
        if not resolution.has_conflict:
            return StoredResolution(resolution=resolution)
        stored = self.store.store(local.id, resolution.resolved_content)
        return StoredResolution(resolution=resolution, stored=stored)
