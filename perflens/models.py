"""Core data models shared across perflens components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import cached_property
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .logging import get_logger

_LOGGER = get_logger("models")


class FileGroup(str, Enum):
    """Source-type buckets used to keep oracle batches homogeneous."""

    COMPONENT = "component"
    TEMPLATE = "template"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    STYLESHEET = "stylesheet"
    MARKUP = "markup"


# Batches execute group by group in this order.
GROUP_ORDER: Tuple[FileGroup, ...] = (
    FileGroup.COMPONENT,
    FileGroup.TEMPLATE,
    FileGroup.JAVASCRIPT,
    FileGroup.TYPESCRIPT,
    FileGroup.STYLESHEET,
    FileGroup.MARKUP,
)


class Severity(str, Enum):
    """Finding severity, each tied to the marker symbol the oracle must emit."""

    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"

    @property
    def marker(self) -> str:
        return _SEVERITY_MARKERS[self]

    @property
    def bucket(self) -> str:
        """Attribute name of the matching list on AnalysisResult/FileIssues."""
        return _SEVERITY_BUCKETS[self]


_SEVERITY_MARKERS: Dict[Severity, str] = {
    Severity.CRITICAL: "\U0001f6a8",
    Severity.WARNING: "\u26a0\ufe0f",
    Severity.SUGGESTION: "\U0001f4a1",
}

_SEVERITY_BUCKETS: Dict[Severity, str] = {
    Severity.CRITICAL: "critical",
    Severity.WARNING: "warnings",
    Severity.SUGGESTION: "suggestions",
}


def count_lines(text: str) -> int:
    """Number of lines as the oracle sees them in the numbered listing."""
    return len(text.splitlines())


@dataclass(frozen=True)
class SourceFile:
    """A discovered source file. Contents and line count are read lazily, once."""

    path: Path
    relative_path: str
    size: int
    extension: str
    group: Optional[FileGroup]
    discovery_index: int = 0

    @cached_property
    def text(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            _LOGGER.warning("Unable to read %s: %s", self.relative_path, exc)
            return ""

    @cached_property
    def line_count(self) -> int:
        return count_lines(self.text)


@dataclass(frozen=True)
class Batch:
    """An ordered, size-bounded set of files from one group sent in a single oracle request."""

    group: FileGroup
    files: Tuple[SourceFile, ...]

    @property
    def total_size(self) -> int:
        return sum(item.size for item in self.files)

    @cached_property
    def contents(self) -> Dict[str, str]:
        return {item.relative_path: item.text for item in self.files}

    def __len__(self) -> int:
        return len(self.files)


@dataclass(frozen=True)
class Issue:
    """A validated finding anchored to a batch member and an in-range line span."""

    severity: Severity
    file: str
    start_line: int
    end_line: int
    description: str
    impact: str
    code_context: str
    solution: str
    expected_improvement: str

    @property
    def location(self) -> str:
        return f"{self.file}:{self.start_line}-{self.end_line}"


@dataclass
class FileIssues:
    """Findings for a single file, split by severity."""

    critical: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
    suggestions: List[Issue] = field(default_factory=list)

    def add(self, issue: Issue) -> None:
        getattr(self, issue.severity.bucket).append(issue)

    @property
    def total(self) -> int:
        return len(self.critical) + len(self.warnings) + len(self.suggestions)


@dataclass
class AnalysisResult:
    """Aggregated findings for a run plus the bookkeeping the report needs."""

    critical: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)
    suggestions: List[Issue] = field(default_factory=list)
    file_issues: Dict[str, FileIssues] = field(default_factory=dict)
    analyzed_files: List[str] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    failed_batches: List[str] = field(default_factory=list)
    batch_count: int = 0
    rejected_count: int = 0
    cancelled: bool = False
    target: str = ""
    started_at: Optional[datetime] = None
    duration: float = 0.0

    def add(self, issue: Issue) -> None:
        getattr(self, issue.severity.bucket).append(issue)
        self.file_issues.setdefault(issue.file, FileIssues()).add(issue)

    @property
    def total(self) -> int:
        return len(self.critical) + len(self.warnings) + len(self.suggestions)


__all__ = [
    "AnalysisResult",
    "Batch",
    "FileGroup",
    "FileIssues",
    "GROUP_ORDER",
    "Issue",
    "Severity",
    "SourceFile",
    "count_lines",
]
