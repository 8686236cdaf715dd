"""Target directory scanning with include/ignore filters and a size ceiling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from .logging import get_logger
from .models import SourceFile
from .planning.grouping import classify


class TargetDirectoryError(FileNotFoundError):
    """Raised when the directory to analyse does not exist or is not a directory."""


@dataclass
class ScanResult:
    """Files that qualified for analysis, in discovery order, plus oversize rejects."""

    root: Path
    files: List[SourceFile] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def matches_pattern(rel_path: str, pattern: str) -> bool:
    """Simplified glob match: ``*`` spans any run of characters, separators included.

    A leading ``**/`` may also stand for zero directories so root-level files
    match ``**/*.js``. No other ``**`` semantics are implemented.
    """
    if fnmatchcase(rel_path, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatchcase(rel_path, pattern[3:])
    return False


def matches_any(rel_path: str, patterns: Sequence[str]) -> bool:
    return any(matches_pattern(rel_path, pattern) for pattern in patterns)


def _iter_candidates(root: Path, ignore: Sequence[str]) -> Iterator[Tuple[Path, str]]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        dirnames.sort()
        filtered_dirs = []
        for name in dirnames:
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if matches_any(f"{rel_path}/", ignore):
                continue
            filtered_dirs.append(name)
        dirnames[:] = filtered_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if matches_any(rel_path, ignore):
                continue
            yield current_dir / filename, rel_path


class FileScanner:
    """Walks the target directory and returns the candidate file set."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def scan(
        self,
        root: str | Path,
        *,
        include: Sequence[str],
        ignore: Sequence[str] = (),
        max_file_size: int,
    ) -> ScanResult:
        """Return every file matching ``include`` that is not ignored and fits ``max_file_size``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise TargetDirectoryError(f"Target directory not found: {root}")
        if not root_path.is_dir():
            raise TargetDirectoryError(f"Target path is not a directory: {root}")

        result = ScanResult(root=root_path)
        for path, rel_path in _iter_candidates(root_path, ignore):
            if not matches_any(rel_path, include):
                continue
            try:
                size = path.stat().st_size
            except OSError as exc:
                self.logger.warning("Unable to stat %s: %s", rel_path, exc)
                continue
            if size > max_file_size:
                self.logger.debug(
                    "Skipping %s (%d bytes exceeds max file size %d)", rel_path, size, max_file_size
                )
                result.skipped.append(rel_path)
                continue

            extension = path.suffix.lower()
            result.files.append(
                SourceFile(
                    path=path,
                    relative_path=rel_path,
                    size=size,
                    extension=extension,
                    group=classify(rel_path, extension),
                    discovery_index=len(result.files),
                )
            )

        self.logger.debug(
            "Scanner discovered %d file(s) under %s (%d oversize)",
            len(result.files),
            root_path,
            len(result.skipped),
        )
        return result


__all__ = ["FileScanner", "ScanResult", "TargetDirectoryError", "matches_any", "matches_pattern"]
