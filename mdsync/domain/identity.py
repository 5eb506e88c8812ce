"""Primitives d'identité de contenu: empreinte et classification par taille."""

from __future__ import annotations

import hashlib

# Seuil au-delà duquel le corps part dans le blob store (1 MiB)
OVERFLOW_THRESHOLD = 1024 * 1024
HASH_LENGTH = 16


def hash_content(content: str) -> str:
    """Empreinte déterministe (SHA-256 tronqué) du contenu texte."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def content_size(content: str) -> int:
    """Taille logique du contenu en octets (UTF-8)."""
    return len(content.encode("utf-8"))


def should_overflow(size: int, threshold: int = OVERFLOW_THRESHOLD) -> bool:
    """True si ``size`` dépasse strictement le seuil de débordement."""
    return size > threshold


def blob_key_for(record_id: str, content_hash: str) -> str:
    """Clé de blob dérivée de l'identifiant et de l'empreinte."""
    return f"{record_id}-{content_hash}"
