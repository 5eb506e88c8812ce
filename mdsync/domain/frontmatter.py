"""Extraction du frontmatter YAML des documents Markdown.

Un échec d'analyse ne bloque jamais une écriture: il dégrade vers un dictionnaire vide.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)

# Clés de linked-data normalisées vers le préfixe `$`
_LD_KEYS = ("id", "type", "context")


def split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Sépare le bloc frontmatter du corps.

    Returns:
        tuple: (données structurées, corps sans frontmatter). Données vides si le bloc est absent
        ou invalide; le corps est alors le contenu intact.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        raw = yaml.safe_load(match.group(1))
    except (yaml.YAMLError, ValueError, TypeError):
        # ValueError: horodatage au bon format mais date impossible (2026-02-30)
        return {}, content
    if not isinstance(raw, dict):
        return {}, content[match.end() :]
    return _normalize(raw), content[match.end() :]


def parse_frontmatter(content: str) -> dict[str, Any]:
    """Retourne les données structurées du document (jamais d'exception)."""
    data, _body = split_frontmatter(content)
    return data


def _normalize(raw: dict[Any, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key)
        if name.startswith("@") and name[1:] in _LD_KEYS:
            name = f"${name[1:]}"
        data[name] = value
    return data
