"""Fusion à trois voies ligne à ligne (alignée par position)."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import zip_longest

MARKER_LOCAL = "<<<<<<< LOCAL"
MARKER_SEPARATOR = "======="
MARKER_REMOTE = ">>>>>>> REMOTE"


@dataclass(frozen=True)
class MergeResult:
    """Contenu fusionné et conflits non résolus."""

    merged: str
    conflicts: list[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def three_way_merge(base: str, local: str, remote: str) -> MergeResult:
    """Fusionne deux éditions concurrentes d'un ancêtre commun.

    Pour chaque index de ligne: identiques des deux côtés -> gardée; inchangée côté local -> ligne
    distante; inchangée côté distant -> ligne locale; sinon conflit rendu avec marqueurs.
    Une ligne absente d'un côté est traitée comme une ligne vide.
    """
    merged: list[str] = []
    conflicts: list[str] = []
    rows = zip_longest(base.split("\n"), local.split("\n"), remote.split("\n"), fillvalue="")
    for number, (base_line, local_line, remote_line) in enumerate(rows, start=1):
        if local_line == remote_line:
            merged.append(local_line)
        elif local_line == base_line:
            merged.append(remote_line)
        elif remote_line == base_line:
            merged.append(local_line)
        else:
            conflicts.append(f"Line {number}: conflict between local and remote")
            merged.extend([MARKER_LOCAL, local_line, MARKER_SEPARATOR, remote_line, MARKER_REMOTE])
    return MergeResult(merged="\n".join(merged), conflicts=conflicts)
