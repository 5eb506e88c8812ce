# ============================================================
# Module : mdsync/infra/github_client.py
# Objet  : Client HTTP vers l'API du Git hosting (statuts, commentaires, fichiers).
# Contexte : Les appels de reporting ne lèvent jamais: ils renvoient
#            ApiCallResult(success=False, error=...). La lecture de fichier lève
#            GitHostError car l'appelant ne peut pas continuer sans le contenu.
# ============================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from mdsync.core.http_constants import (
    DEFAULT_TIMEOUT,
    HTTP_NOT_FOUND,
    HTTP_STATUS_CLIENT_ERROR_MIN,
    USER_AGENT,
)
from mdsync.domain.errors import GitHostError

PREVIEW_COMMENT = """## Preview Deployment

Your changes have been deployed to a preview environment:

**Preview URL:** {preview_url}

This preview will be automatically cleaned up when the PR is merged or closed.

---
*Deployed by mdsync*"""


@dataclass(frozen=True)
class ApiCallResult:
    success: bool
    error: str | None = None


class GitHubClient:
    """Client de l'API REST du Git hosting.

    Args:
        base_url: URL de l'API (ex: https://api.github.com).
        token: jeton bearer; sans jeton, les appels d'écriture échouent proprement.
        client: client httpx injecté (tests via ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._log = structlog.get_logger(__name__).bind(component="github_client")
        if client is None:
            timeout = httpx.Timeout(connect=5.0, read=DEFAULT_TIMEOUT, write=5.0, pool=5.0)
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
            client = httpx.Client(timeout=timeout, limits=limits)
        self._client = client

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {"Accept": accept, "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _post(self, url: str, body: dict[str, Any], action: str) -> ApiCallResult:
        if not self.token:
            return ApiCallResult(success=False, error="No GitHub token configured")
        try:
            resp = self._client.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            self._log.warning("github_call_failed", action=action, error=str(exc))
            return ApiCallResult(success=False, error=f"Failed to {action}: {exc}")
        if resp.status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
            self._log.warning("github_call_rejected", action=action, status=resp.status_code)
            return ApiCallResult(success=False, error=f"GitHub API error: {resp.status_code}")
        return ApiCallResult(success=True)

    def report_status(
        self,
        repository: str,
        sha: str,
        state: str,
        context: str,
        description: str | None = None,
        target_url: str | None = None,
    ) -> ApiCallResult:
        """Publie un statut de commit (pending/success/error/failure)."""
        body: dict[str, Any] = {"state": state, "context": context}
        if description is not None:
            body["description"] = description
        if target_url is not None:
            body["target_url"] = target_url
        url = f"{self.base_url}/repos/{repository}/statuses/{sha}"
        return self._post(url, body, "report status")

    def comment_preview_url(
        self, repository: str, pr_number: int, preview_url: str
    ) -> ApiCallResult:
        """Commente l'URL de preview sur la pull request."""
        url = f"{self.base_url}/repos/{repository}/issues/{pr_number}/comments"
        body = {"body": PREVIEW_COMMENT.format(preview_url=preview_url)}
        return self._post(url, body, "comment on PR")

    def fetch_file(self, repository: str, path: str, ref: str) -> str:
        """Lit le contenu brut d'un fichier à une révision donnée.

        Raises:
            GitHostError: fichier absent, réponse en erreur ou réseau indisponible.
        """
        url = f"{self.base_url}/repos/{repository}/contents/{quote(path)}"
        try:
            resp = self._client.get(
                url,
                params={"ref": ref},
                headers=self._headers(accept="application/vnd.github.raw+json"),
            )
        except httpx.HTTPError as exc:
            raise GitHostError(f"fetch failed for {path}: {exc}") from exc
        if resp.status_code == HTTP_NOT_FOUND:
            raise GitHostError(f"file not found: {path}@{ref}", HTTP_NOT_FOUND)
        if resp.status_code >= HTTP_STATUS_CLIENT_ERROR_MIN:
            raise GitHostError(f"GitHub API error: {resp.status_code}", resp.status_code)
        return resp.text

    def close(self) -> None:
        self._client.close()
