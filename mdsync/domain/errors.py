"""Exceptions du moteur de stockage et de synchronisation.

L'absence d'un enregistrement n'est jamais une exception (retour ``None``). Ces classes couvrent
les défaillances de dépendances amont et les payloads inexploitables.
"""

from __future__ import annotations


class ContentSyncError(Exception):
    """Erreur de base du moteur de synchronisation."""


class BlobNotFoundError(ContentSyncError):
    """Un enregistrement référence un blob introuvable dans le blob store."""

    def __init__(self, blob_key: str) -> None:
        self.blob_key = blob_key
        super().__init__(f"blob not found: {blob_key}")


class BlobStoreError(ContentSyncError):
    """Échec d'E/S du blob store (lecture, écriture ou suppression)."""


class LedgerError(ContentSyncError):
    """Échec d'E/S du ledger."""


class GitHostError(ContentSyncError):
    """Lecture impossible d'un fichier via l'API du Git hosting."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class InvalidPushEventError(ContentSyncError):
    """Payload push incomplet (ref, after ou repository manquant)."""
