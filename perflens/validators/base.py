"""Validation predicates and records shared by the response parser."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Optional

from ..models import Batch, SourceFile

UNKNOWN_FILE = "unknown_file"
LINE_OUT_OF_RANGE = "line_out_of_range"
MALFORMED = "malformed"

_WRAPPERS = ("**", "`", '"', "'")


@dataclass(frozen=True)
class RejectedRecord:
    """A response record dropped because it failed validation."""

    reason: str
    path: str
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    detail: str = ""


def normalize_claimed_path(raw: str) -> str:
    """Strip markdown wrappers and relative prefixes from a path the oracle cited."""
    value = raw.strip()
    changed = True
    while changed and value:
        changed = False
        for wrapper in _WRAPPERS:
            if len(value) > 2 * len(wrapper) - 1 and value.startswith(wrapper) and value.endswith(wrapper):
                value = value[len(wrapper) : -len(wrapper)].strip()
                changed = True
    value = value.replace("\\", "/")
    while value.startswith("./"):
        value = value[2:]
    return value


class BatchIndex:
    """Maps claimed paths back to the files that were actually sent."""

    def __init__(self, files: Iterable[SourceFile], root: Path | None = None) -> None:
        self._files: Dict[str, SourceFile] = {item.relative_path: item for item in files}
        self.root = root

    @classmethod
    def for_batch(cls, batch: Batch, root: Path | None = None) -> "BatchIndex":
        return cls(batch.files, root)

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._files

    def __len__(self) -> int:
        return len(self._files)

    @property
    def paths(self) -> list[str]:
        return list(self._files)

    def resolve(self, claimed: str) -> Optional[SourceFile]:
        """Return the batch member ``claimed`` refers to, or None."""
        candidate = normalize_claimed_path(claimed)
        if not candidate:
            return None
        if candidate in self._files:
            return self._files[candidate]
        if self.root is not None and PurePosixPath(candidate).is_absolute():
            root = self.root.as_posix().rstrip("/") + "/"
            if candidate.startswith(root):
                return self._files.get(candidate[len(root) :])
        return None


def is_batch_member(index: BatchIndex, claimed: str) -> bool:
    return index.resolve(claimed) is not None


def line_range_within(start: int, end: int, line_count: int) -> bool:
    """True when ``start..end`` is a non-empty 1-based span inside the file."""
    return 1 <= start <= end <= line_count


__all__ = [
    "BatchIndex",
    "LINE_OUT_OF_RANGE",
    "MALFORMED",
    "RejectedRecord",
    "UNKNOWN_FILE",
    "is_batch_member",
    "line_range_within",
    "normalize_claimed_path",
]
