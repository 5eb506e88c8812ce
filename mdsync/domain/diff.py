# ============================================================
# Module : mdsync/domain/diff.py
# Objet  : Diff/patch ligne à ligne, aligné par position.
# Notes  : Ce n'est pas un diff minimal (pas de LCS). La ligne i de l'ancien
#          contenu est comparée à la ligne i du nouveau. Sert uniquement à
#          mesurer l'ampleur d'un changement; le contenu complet reste canonique.
# ============================================================
"""Moteur de diff/patch ligne à ligne.

Les positions sont des offsets (en caractères) de début de ligne dans l'ancien contenu.
Propriété: ``apply_diff(old, compute_diff(old, new)) == new``.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from enum import Enum
from itertools import zip_longest


class DiffOpType(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class DiffOperation:
    """Opération élémentaire de diff."""

    type: DiffOpType
    position: int
    length: int | None = None
    content: str | None = None


@dataclass(frozen=True)
class ContentDiff:
    """Liste d'opérations; ``has_changes`` ssi la liste est non vide."""

    operations: list[DiffOperation] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.operations)


def compute_diff(old: str, new: str) -> ContentDiff:
    """Calcule le diff positionnel entre deux contenus."""
    if old == new:
        return ContentDiff()

    operations: list[DiffOperation] = []
    position = 0
    for old_line, new_line in zip_longest(old.split("\n"), new.split("\n")):
        if old_line != new_line:
            if old_line is None:
                operations.append(DiffOperation(DiffOpType.INSERT, position, content=new_line))
            elif new_line is None:
                operations.append(
                    DiffOperation(DiffOpType.DELETE, position, length=len(old_line) + 1)
                )
            else:
                operations.append(
                    DiffOperation(
                        DiffOpType.REPLACE, position, length=len(old_line), content=new_line
                    )
                )
        position += (len(old_line) if old_line is not None else 0) + 1
    return ContentDiff(operations)


def _line_starts(lines: list[str]) -> list[int]:
    starts: list[int] = []
    offset = 0
    for line in lines:
        starts.append(offset)
        offset += len(line) + 1
    return starts


def apply_diff(old: str, diff: ContentDiff) -> str:
    """Applique un diff sur l'ancien contenu.

    Les opérations sont appliquées par position décroissante pour que les modifications déjà faites
    n'invalident pas les offsets suivants. Une position au-delà de la dernière ligne désigne la fin
    du document.
    """
    if not diff.has_changes:
        return old

    old_lines = old.split("\n")
    starts = _line_starts(old_lines)
    lines = list(old_lines)

    for op in sorted(diff.operations, key=lambda o: o.position, reverse=True):
        index = bisect_left(starts, op.position)
        if op.type is DiffOpType.INSERT:
            lines.insert(index, op.content or "")
        elif op.type is DiffOpType.DELETE:
            if index < len(lines):
                del lines[index]
        else:
            if index < len(lines):
                lines[index] = op.content or ""
            else:
                lines.append(op.content or "")
    return "\n".join(lines)
