"""Deterministic priority heuristics for choosing which files reach the oracle."""

from __future__ import annotations

from typing import Iterable, List

from ..models import SourceFile
from .grouping import (
    COMPONENT_SUFFIXES,
    JAVASCRIPT_SUFFIXES,
    STYLESHEET_SUFFIXES,
    TEMPLATE_SUFFIXES,
    TYPESCRIPT_SUFFIXES,
)

_ENTRY_MARKERS = ("index.", "main.")
_APP_MARKERS = ("app.", "App.")
_SIZE_BUCKET = 10 * 1024
_SIZE_BONUS_CEILING = 10


def _suffix(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    dot = name.rfind(".")
    return name[dot:].lower() if dot > 0 else ""


def score(path: str, size: int) -> int:
    """Return the priority score for a file; a pure function of path and size."""
    normalized = path.replace("\\", "/")
    parts = normalized.split("/")[:-1]
    suffix = _suffix(normalized)

    total = 0
    if any(marker in normalized for marker in _ENTRY_MARKERS):
        total += 10
    if any(marker in normalized for marker in _APP_MARKERS):
        total += 8
    if "components" in parts:
        total += 5
    if "pages" in parts:
        total += 5
    total += max(0, _SIZE_BONUS_CEILING - size // _SIZE_BUCKET)

    if suffix in COMPONENT_SUFFIXES or suffix in TEMPLATE_SUFFIXES:
        total += 3
    elif suffix in JAVASCRIPT_SUFFIXES or suffix in TYPESCRIPT_SUFFIXES:
        total += 2
    elif suffix in STYLESHEET_SUFFIXES:
        total += 1
    return total


def prioritize(files: Iterable[SourceFile]) -> List[SourceFile]:
    """Sort files by descending score; equal scores keep discovery order."""
    return sorted(files, key=lambda item: -score(item.relative_path, item.size))


__all__ = ["prioritize", "score"]
