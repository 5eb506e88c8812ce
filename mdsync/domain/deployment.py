"""Environnements de déploiement et résultats de synchronisation.

Objet pur: correspondance branche -> environnement, filtrage des documents et dérivation des
identifiants/namespaces de contenu.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

_PR_REF_RE = re.compile(r"refs/pull/(\d+)/")
_SLUG_INVALID_RE = re.compile(r"[^a-zA-Z0-9-]")
_SLUG_DASHES_RE = re.compile(r"-+")
_DOC_SUFFIX_RE = re.compile(r"\.(mdx|md)$")
PRODUCTION_BRANCHES = ("main", "master")


class EnvironmentName(str, Enum):
    PRODUCTION = "production"
    PREVIEW = "preview"
    DEVELOPMENT = "development"


@dataclass(frozen=True)
class DeploymentEnvironment:
    """Environnement cible dérivé d'une branche (jamais persisté)."""

    name: EnvironmentName
    branch: str
    url: str | None = None
    pr_number: int | None = None


@dataclass
class DeploymentResult:
    """Bilan d'un déploiement; ``success`` est faux ssi des erreurs existent."""

    deployed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    deleted_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "deployed_files": list(self.deployed_files),
            "skipped_files": list(self.skipped_files),
            "deleted_files": list(self.deleted_files),
            "errors": list(self.errors),
        }


def branch_to_slug(branch: str) -> str:
    """Slug URL-safe d'un nom de branche."""
    return _SLUG_DASHES_RE.sub("-", _SLUG_INVALID_RE.sub("-", branch)).lower()


def map_branch_to_environment(
    branch: str,
    custom_mappings: Mapping[str, str] | None = None,
    base_url: str | None = None,
) -> DeploymentEnvironment:
    """Associe une branche à un environnement de déploiement.

    Ordre: table explicite, ref de pull request, branches de production, sinon preview.
    """
    base = base_url.rstrip("/") if base_url else None
    if custom_mappings and branch in custom_mappings:
        return DeploymentEnvironment(
            name=EnvironmentName(custom_mappings[branch]), branch=branch, url=base
        )

    pr_match = _PR_REF_RE.search(branch)
    if pr_match:
        pr_number = int(pr_match.group(1))
        return DeploymentEnvironment(
            name=EnvironmentName.PREVIEW,
            branch=branch,
            pr_number=pr_number,
            url=f"{base}/preview/pr-{pr_number}" if base else None,
        )

    if branch in PRODUCTION_BRANCHES:
        return DeploymentEnvironment(name=EnvironmentName.PRODUCTION, branch=branch, url=base)

    slug = branch_to_slug(branch)
    return DeploymentEnvironment(
        name=EnvironmentName.PREVIEW,
        branch=branch,
        url=f"{base}/preview/{slug}" if base else None,
    )


def namespace_for(environment: DeploymentEnvironment, default_namespace: str = "default") -> str:
    """Namespace de ledger isolant les contenus d'un environnement."""
    if environment.name is EnvironmentName.PRODUCTION:
        return default_namespace
    if environment.name is EnvironmentName.DEVELOPMENT:
        return "development"
    if environment.pr_number is not None:
        return f"pr-{environment.pr_number}"
    return f"preview-{branch_to_slug(environment.branch)}"


def is_document_file(path: str, extensions: Iterable[str] = (".mdx",)) -> bool:
    """True si le chemin porte une extension de document."""
    return path.endswith(tuple(extensions))


def content_id_for_path(path: str) -> str:
    """Identifiant de contenu: chemin sans extension .mdx/.md."""
    return _DOC_SUFFIX_RE.sub("", path)
