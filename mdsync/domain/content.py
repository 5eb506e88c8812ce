"""
Modèle de domaine des contenus versionnés (POPO).

Ce module définit les enregistrements stockés par le ledger, leurs entrées d'historique et les
résultats agrégés produits par le record store.
"""

# ============================================================
# Module : mdsync/domain/content.py
# Objet  : Enregistrements de contenu versionnés et résultats associés.
# Invariants :
#  - (id, version) est unique et immuable une fois écrit.
#  - hash ne dépend que de content.
#  - blob_key renseigné => content == "" dans le ledger.
# ============================================================

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class StorageTier(str, Enum):
    """Niveau de stockage d'un enregistrement."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


@dataclass
class ContentRecord:
    """
    Document stocké (une version).

    Attributs
    - id: clé stable fournie par l'appelant.
    - hash: empreinte du contenu, recalculée à chaque écriture.
    - content: corps brut; vide si le corps vit dans le blob store.
    - data: frontmatter structuré (opaque pour cette couche).
    - size: taille logique en octets, quel que soit l'emplacement physique.
    - version: entier croissant par id, à partir de 1.
    - stored_at: date de création de cette version.
    - blob_key: pointeur vers le blob store (débordement).
    - access_count / last_accessed: compteurs d'usage pour le tiering.
    - tier: étiquette attribuée par le record store lors d'une écriture.
    """

    id: str
    hash: str
    content: str
    data: dict[str, Any]
    size: int
    version: int
    stored_at: datetime
    blob_key: str | None = None
    access_count: int = 0
    last_accessed: datetime | None = None
    tier: StorageTier | None = None

    def with_content(self, content: str) -> ContentRecord:
        """Copie hydratée avec le corps fourni."""
        return replace(self, content=content)

    def with_tier(self, tier: StorageTier) -> ContentRecord:
        """Copie étiquetée avec un niveau de stockage."""
        return replace(self, tier=tier)


@dataclass(frozen=True)
class ContentVersion:
    """Entrée d'historique légère (lecture seule hors du store)."""

    version: int
    hash: str
    stored_at: datetime
    size: int


@dataclass(frozen=True)
class AccessStats:
    """Statistiques d'accès d'un contenu."""

    access_count: int
    last_accessed: datetime
    tier: StorageTier


@dataclass(frozen=True)
class StorageMetrics:
    """Agrégats de stockage sur l'ensemble des contenus d'un namespace."""

    ledger_size: int
    blob_size: int
    total_size: int
    record_count: int
    count_by_type: dict[str, int]
    tier_counts: dict[str, int]


@dataclass(frozen=True)
class VersionDiff:
    """Lignes ajoutées/retirées entre deux versions (comparaison ensembliste)."""

    added: list[str]
    removed: list[str]

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


@dataclass
class BatchStoreResult:
    """Résultat d'une écriture par lot."""

    records: list[ContentRecord] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


@dataclass
class BatchGetResult:
    """Résultat d'une lecture par lot (None pour un contenu absent)."""

    records: dict[str, ContentRecord | None] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)


@dataclass
class BatchDeleteResult:
    """Résultat d'une suppression par lot."""

    deleted: int = 0
    failed: list[str] = field(default_factory=list)
