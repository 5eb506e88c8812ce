"""
Événements webhook du Git hosting: signature HMAC et normalisation des push.

Ce module vérifie la signature des payloads bruts et transforme un événement push en
``ParsedPushEvent``, consommé immédiatement par l'orchestrateur puis abandonné.
"""

from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from mdsync.domain.errors import InvalidPushEventError

SIGNATURE_PREFIX = "sha256="
_TAG_PREFIX = "refs/tags/"
_HEAD_PREFIX = "refs/heads/"


def compute_signature(payload: bytes | str, secret: str) -> str:
    """Signature HMAC-SHA256 au format ``sha256=<hex>``."""
    body = payload.encode("utf-8") if isinstance(payload, str) else payload
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(payload: bytes | str, signature: str | None, secret: str) -> bool:
    """Vérifie la signature en temps constant.

    Une signature absente ou de longueur différente est un échec, jamais une exception.
    """
    if not signature:
        return False
    expected = compute_signature(payload, secret).encode("utf-8")
    provided = signature.encode("utf-8", errors="replace")
    if len(provided) != len(expected):
        return False
    return hmac.compare_digest(provided, expected)


@dataclass(frozen=True)
class PushCommit:
    """Commit d'un push (chemins ajoutés/modifiés/supprimés)."""

    id: str
    message: str = ""
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]) -> PushCommit:
        return cls(
            id=str(raw.get("id", "")),
            message=str(raw.get("message", "")),
            added=list(raw.get("added") or []),
            modified=list(raw.get("modified") or []),
            removed=list(raw.get("removed") or []),
        )


@dataclass(frozen=True)
class ParsedPushEvent:
    """Payload push normalisé."""

    branch: str
    repository: str
    sha: str
    before: str
    is_tag: bool
    is_forced: bool
    commits: list[PushCommit]
    default_branch: str


@dataclass(frozen=True)
class ChangedFiles:
    """Union dédupliquée (ordre conservé) des chemins touchés par un push."""

    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def extract_branch(ref: str) -> tuple[str, bool]:
    """Retourne (branche ou tag, is_tag) à partir d'une ref Git."""
    if ref.startswith(_TAG_PREFIX):
        return ref[len(_TAG_PREFIX) :], True
    if ref.startswith(_HEAD_PREFIX):
        return ref[len(_HEAD_PREFIX) :], False
    return ref, False


def parse_push_event(raw: Mapping[str, Any]) -> ParsedPushEvent:
    """Normalise un payload push brut.

    Raises:
        InvalidPushEventError: si ``ref``, ``after`` ou ``repository`` manquent.
    """
    ref = raw.get("ref")
    after = raw.get("after")
    repository = raw.get("repository")
    if not isinstance(ref, str) or not isinstance(after, str) or not isinstance(repository, Mapping):
        raise InvalidPushEventError("push payload requires ref, after and repository")
    branch, is_tag = extract_branch(ref)
    return ParsedPushEvent(
        branch=branch,
        repository=str(repository.get("full_name", "")),
        sha=after,
        before=str(raw.get("before", "")),
        is_tag=is_tag,
        is_forced=bool(raw.get("forced", False)),
        commits=[PushCommit.from_payload(c) for c in raw.get("commits") or []],
        default_branch=str(repository.get("default_branch", "")),
    )


def changed_files(
    event: ParsedPushEvent,
    *,
    documents_only: bool = False,
    extensions: Iterable[str] = (".mdx",),
) -> ChangedFiles:
    """Aplati les chemins des commits du push (filtrage optionnel par extension)."""
    suffixes = tuple(extensions)
    added: dict[str, None] = {}
    modified: dict[str, None] = {}
    removed: dict[str, None] = {}
    for commit in event.commits:
        for target, paths in ((added, commit.added), (modified, commit.modified), (removed, commit.removed)):
            for path in paths:
                if documents_only and not path.endswith(suffixes):
                    continue
                target[path] = None
    return ChangedFiles(added=list(added), modified=list(modified), removed=list(removed))


# Variantes d'événements webhook


@dataclass(frozen=True)
class PingEvent:
    zen: str | None = None


@dataclass(frozen=True)
class PushEvent:
    event: ParsedPushEvent


@dataclass(frozen=True)
class IgnoredEvent:
    event_type: str


WebhookEvent = PingEvent | PushEvent | IgnoredEvent


def classify_webhook(event_type: str | None, payload: Mapping[str, Any] | None) -> WebhookEvent:
    """Construit la variante d'événement à partir du type d'en-tête et du payload décodé."""
    if event_type == "ping":
        return PingEvent(zen=(payload or {}).get("zen"))
    if event_type == "push":
        return PushEvent(parse_push_event(payload or {}))
    return IgnoredEvent(event_type=event_type or "unknown")
