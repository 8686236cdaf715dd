"""Parses free-text oracle responses into validated issues."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

from ..logging import get_logger
from ..models import Issue, Severity
from .base import (
    LINE_OUT_OF_RANGE,
    MALFORMED,
    UNKNOWN_FILE,
    BatchIndex,
    RejectedRecord,
    line_range_within,
)

_MARKER_SEVERITY = {
    "\U0001f6a8": Severity.CRITICAL,
    "\u26a0": Severity.WARNING,
    "\U0001f4a1": Severity.SUGGESTION,
}

_HEADER_PATTERN = re.compile(
    r"^[ \t]*(?:(?:[-*]|\d+[.)])[ \t]+)?"
    r"(?P<marker>\U0001f6a8|\u26a0\ufe0f?|\U0001f4a1)[ \t]+"
    r"(?P<path>\S(?:.*?\S)?)[ \t]*:[ \t]*(?P<start>\d+)[ \t]*-[ \t]*(?P<end>\d+)[ \t]*$",
    re.MULTILINE,
)

_BODY_PATTERN = re.compile(
    r"\s*Description:[ \t]*(?P<description>.*?)\n"
    r"\s*Impact:[ \t]*(?P<impact>.*?)\n"
    r"\s*Code Context:[ \t]*\n"
    r"[ \t]*```[^\n]*\n(?:(?P<code>.*?)\n)?[ \t]*```[ \t]*\n"
    r"\s*Solution:[ \t]*(?P<solution>.*?)\n"
    r"\s*Expected Improvement:[ \t]*(?P<expected>[^\n]*)",
    re.DOTALL,
)


@dataclass
class ParseOutcome:
    """Issues that survived validation plus the records that did not."""

    issues: List[Issue] = field(default_factory=list)
    rejected: List[RejectedRecord] = field(default_factory=list)


class ResponseParser:
    """Extracts issue records from oracle output and validates each against its batch."""

    def __init__(self) -> None:
        self.logger = get_logger("validators.response_parser")

    def parse(self, text: str, index: BatchIndex) -> ParseOutcome:
        outcome = ParseOutcome()
        text = (text or "").replace("\r\n", "\n")
        headers = list(_HEADER_PATTERN.finditer(text))
        for position, header in enumerate(headers):
            body_end = headers[position + 1].start() if position + 1 < len(headers) else len(text)
            body = text[header.end() : body_end]
            self._parse_record(header, body, index, outcome)
        return outcome

    def _parse_record(
        self,
        header: re.Match[str],
        body: str,
        index: BatchIndex,
        outcome: ParseOutcome,
    ) -> None:
        claimed = header.group("path")
        start = int(header.group("start"))
        end = int(header.group("end"))

        match = _BODY_PATTERN.match(body)
        if match is None:
            self._reject(
                outcome,
                RejectedRecord(MALFORMED, claimed, start, end, "record body does not follow the issue format"),
            )
            return

        source = index.resolve(claimed)
        if source is None:
            self._reject(
                outcome,
                RejectedRecord(UNKNOWN_FILE, claimed, start, end, "path is not part of the analysed batch"),
            )
            return

        if not line_range_within(start, end, source.line_count):
            self._reject(
                outcome,
                RejectedRecord(
                    LINE_OUT_OF_RANGE,
                    source.relative_path,
                    start,
                    end,
                    f"file has {source.line_count} line(s)",
                ),
            )
            return

        severity = _MARKER_SEVERITY[header.group("marker")[0]]
        outcome.issues.append(
            Issue(
                severity=severity,
                file=source.relative_path,
                start_line=start,
                end_line=end,
                description=match.group("description").strip(),
                impact=match.group("impact").strip(),
                code_context=(match.group("code") or "").strip(),
                solution=match.group("solution").strip(),
                expected_improvement=match.group("expected").strip(),
            )
        )

    def _reject(self, outcome: ParseOutcome, record: RejectedRecord) -> None:
        outcome.rejected.append(record)
        self.logger.warning(
            "Rejected %s record for %s:%s-%s (%s)",
            record.reason,
            record.path,
            record.start_line,
            record.end_line,
            record.detail,
        )


__all__ = ["ParseOutcome", "ResponseParser"]
