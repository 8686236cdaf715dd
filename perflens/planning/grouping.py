"""Source-type classification for homogeneous oracle batches."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..models import GROUP_ORDER, FileGroup, SourceFile

COMPONENT_SUFFIXES = frozenset({".jsx", ".tsx"})
TEMPLATE_SUFFIXES = frozenset({".vue", ".svelte", ".astro"})
TYPESCRIPT_SUFFIXES = frozenset({".ts", ".mts", ".cts"})
JAVASCRIPT_SUFFIXES = frozenset({".js", ".mjs", ".cjs"})
STYLESHEET_SUFFIXES = frozenset({".css", ".scss", ".sass", ".less"})
MARKUP_SUFFIXES = frozenset({".html", ".htm"})

_SUFFIX_GROUPS: tuple[tuple[frozenset[str], FileGroup], ...] = (
    (TEMPLATE_SUFFIXES, FileGroup.TEMPLATE),
    (TYPESCRIPT_SUFFIXES, FileGroup.TYPESCRIPT),
    (JAVASCRIPT_SUFFIXES, FileGroup.JAVASCRIPT),
    (STYLESHEET_SUFFIXES, FileGroup.STYLESHEET),
    (MARKUP_SUFFIXES, FileGroup.MARKUP),
)


def classify(relative_path: str, extension: str) -> Optional[FileGroup]:
    """Return the single group a file belongs to, or None for unrecognised types.

    Component markers win over plain extensions: ``.jsx``/``.tsx`` files and
    scripts whose relative path mentions ``react`` (file or directory name) are
    treated as framework markup. Stylesheets and markup keep their own group.
    """
    suffix = extension.lower()
    if suffix in COMPONENT_SUFFIXES:
        return FileGroup.COMPONENT
    if "react" in relative_path.lower() and suffix in (TYPESCRIPT_SUFFIXES | JAVASCRIPT_SUFFIXES):
        return FileGroup.COMPONENT
    for suffixes, group in _SUFFIX_GROUPS:
        if suffix in suffixes:
            return group
    return None


def group_files(files: Iterable[SourceFile]) -> Dict[FileGroup, List[SourceFile]]:
    """Bucket files by group, preserving input order inside each bucket."""
    groups: Dict[FileGroup, List[SourceFile]] = {group: [] for group in GROUP_ORDER}
    for item in files:
        if item.group is None:
            continue
        groups[item.group].append(item)
    return groups


__all__ = [
    "COMPONENT_SUFFIXES",
    "JAVASCRIPT_SUFFIXES",
    "MARKUP_SUFFIXES",
    "STYLESHEET_SUFFIXES",
    "TEMPLATE_SUFFIXES",
    "TYPESCRIPT_SUFFIXES",
    "classify",
    "group_files",
]
