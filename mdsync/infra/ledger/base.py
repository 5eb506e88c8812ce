"""Interface de base du ledger (store durable à clés, sérialisé par clé).

Le ledger garantit la sérialisation des écritures pour un même identifiant; le moteur ne pose
aucun verrou supplémentaire.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Protocol

from mdsync.domain.content import ContentRecord, ContentVersion


class Ledger(ABC):
    """Interface abstraite d'un ledger lié à un namespace."""

    namespace: str

    @abstractmethod
    def store_content(
        self,
        record_id: str,
        content: str,
        data: dict[str, Any],
        *,
        blob_key: str | None = None,
        content_hash: str | None = None,
        size: int | None = None,
    ) -> ContentRecord:
        """Écrit une nouvelle version (version = dernière + 1).

        ``content_hash`` et ``size`` sont calculés depuis ``content`` s'ils ne sont pas fournis;
        le chemin de débordement les passe explicitement avec un ``content`` vide.
        """
        raise NotImplementedError

    @abstractmethod
    def get_content(self, record_id: str, version: int | None = None) -> ContentRecord | None:
        """Retourne la dernière version, ou une version précise; None si absente."""
        raise NotImplementedError

    @abstractmethod
    def list_content(self) -> list[ContentRecord]:
        """Retourne la dernière version de chaque contenu du namespace."""
        raise NotImplementedError

    @abstractmethod
    def get_version_history(self, record_id: str) -> list[ContentVersion]:
        """Historique par version croissante (vide si inconnu)."""
        raise NotImplementedError

    @abstractmethod
    def store_metadata(self, records: list[dict[str, Any]]) -> int:
        """Stocke des lignes de métadonnées structurées; retourne le nombre stocké."""
        raise NotImplementedError

    @abstractmethod
    def get_database_size(self) -> int:
        """Taille en octets des corps stockés dans le ledger."""
        raise NotImplementedError

    @abstractmethod
    def record_access(self, record_id: str) -> None:
        """Incrémente les compteurs d'accès de la dernière version."""
        raise NotImplementedError

    @abstractmethod
    def delete_versions(self, record_id: str, versions: Iterable[int]) -> int:
        """Supprime des versions (idempotent); retourne le nombre effectivement supprimé."""
        raise NotImplementedError

    @abstractmethod
    def delete_content(self, record_id: str) -> bool:
        """Supprime toutes les versions d'un contenu; False s'il n'existait pas."""
        raise NotImplementedError


class LedgerProvider(Protocol):
    """Fournit un ledger par namespace."""

    def __call__(self, namespace: str) -> Ledger:
        """Retourne le ledger du namespace demandé."""
