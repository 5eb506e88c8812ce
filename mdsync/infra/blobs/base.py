"""Interface de base du blob store (corps volumineux hors ledger).

Les lectures/écritures sont des E/S bloquantes sans retry interne; les appelants réessaient à un
niveau supérieur (redélivrance des webhooks).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BlobPutResult:
    key: str
    size: int


@dataclass(frozen=True)
class BlobObject:
    """Objet lu depuis le blob store."""

    key: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self) -> str:
        return self.data.decode("utf-8")


class BlobStore(ABC):
    """Interface abstraite d'un blob store adressé par clé."""

    @abstractmethod
    def put(self, key: str, data: bytes | str) -> BlobPutResult:
        """Écrit (ou écrase) un objet."""
        raise NotImplementedError

    @abstractmethod
    def get(self, key: str) -> BlobObject | None:
        """Lit un objet; None s'il est absent."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Supprime un objet (sans effet s'il est absent)."""
        raise NotImplementedError

    @abstractmethod
    def head(self, key: str) -> BlobObject | None:
        """Présence d'un objet; None s'il est absent."""
        raise NotImplementedError

    @abstractmethod
    def list_keys(self) -> list[str]:
        """Toutes les clés physiques présentes (pour la détection d'orphelins)."""
        raise NotImplementedError


def to_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data
