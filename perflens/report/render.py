"""Markdown, HTML and JSON renderings of an analysis result."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..audit import AuditContext
from ..config import REPORT_FORMATS, AnalysisLimits, OutputConfig
from ..logging import get_logger
from ..models import AnalysisResult, Issue, Severity

TEMPLATES_DIR = Path(__file__).with_name("templates")
MARKDOWN_TEMPLATE = "report.md.j2"
HTML_TEMPLATE = "report.html.j2"
FORMATS = REPORT_FORMATS

_LOGGER = get_logger("report")

_SECTIONS = (
    ("critical", "Critical Issues", "No critical issues found"),
    ("warnings", "Warnings", "No warnings found"),
    ("suggestions", "Suggestions", "No suggestions found"),
)
_BUCKET_SEVERITY = {severity.bucket: severity for severity in Severity}


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html.j2",), default_for_string=False),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _issue_payload(issue: Issue) -> Dict[str, Any]:
    return {
        "severity": issue.severity.value,
        "file": issue.file,
        "start_line": issue.start_line,
        "end_line": issue.end_line,
        "description": issue.description,
        "impact": issue.impact,
        "code_context": issue.code_context,
        "solution": issue.solution,
        "expected_improvement": issue.expected_improvement,
    }


def _metadata(result: AnalysisResult, limits: Optional[AnalysisLimits]) -> Dict[str, Any]:
    started = result.started_at or datetime.now(UTC)
    return {
        "target": result.target,
        "timestamp": started.isoformat(timespec="seconds"),
        "duration": round(result.duration, 2),
        "analyzed_files": len(result.analyzed_files),
        "batch_count": result.batch_count,
        "rejected_records": result.rejected_count,
        "cancelled": result.cancelled,
        "limits": asdict(limits) if limits is not None else None,
    }


def build_payload(
    result: AnalysisResult,
    *,
    limits: Optional[AnalysisLimits] = None,
    audit_context: Optional[AuditContext] = None,
) -> Dict[str, Any]:
    """Return the JSON-serialisable form of ``result`` with run metadata."""
    file_issues: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for path, bucket in result.file_issues.items():
        file_issues[path] = {
            name: [_issue_payload(issue) for issue in getattr(bucket, name)] for name, _, _ in _SECTIONS
        }
    payload: Dict[str, Any] = {
        "metadata": _metadata(result, limits),
        "codeAnalysis": {
            name: [_issue_payload(issue) for issue in getattr(result, name)] for name, _, _ in _SECTIONS
        },
        "fileIssues": file_issues,
        "skippedFiles": list(result.skipped_files),
        "failedBatches": list(result.failed_batches),
    }
    if audit_context is not None and not audit_context.is_empty:
        payload["audit"] = {"metrics": audit_context.metrics, "analysis": dict(audit_context.analysis)}
    return payload


def render_json(
    result: AnalysisResult,
    *,
    limits: Optional[AnalysisLimits] = None,
    audit_context: Optional[AuditContext] = None,
) -> str:
    payload = build_payload(result, limits=limits, audit_context=audit_context)
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def _metric_cards(metrics: str) -> List[Dict[str, str]]:
    cards = []
    for line in metrics.splitlines():
        title, sep, value = line.partition(":")
        if sep and title.strip() and value.strip():
            cards.append({"title": title.strip(), "value": value.strip()})
    return cards


def _report_context(
    result: AnalysisResult,
    limits: Optional[AnalysisLimits],
    audit_context: Optional[AuditContext],
) -> Dict[str, Any]:
    sections = []
    for name, title, empty in _SECTIONS:
        issues = [
            {
                "marker": issue.severity.marker,
                "severity": issue.severity.value,
                "location": issue.location,
                "description": issue.description,
                "impact": issue.impact,
                "code_context": issue.code_context,
                "solution": issue.solution,
                "expected_improvement": issue.expected_improvement,
            }
            for issue in getattr(result, name)
        ]
        sections.append(
            {
                "severity": _BUCKET_SEVERITY[name].value,
                "title": title,
                "empty": empty,
                "issues": issues,
            }
        )

    audit = None
    if audit_context is not None and not audit_context.is_empty:
        metrics = audit_context.metrics.strip()
        audit = {
            "metrics": metrics,
            "cards": _metric_cards(metrics),
            "analysis": audit_context.analysis,
        }

    return {
        "meta": _metadata(result, limits),
        "audit": audit,
        "sections": sections,
        "total": result.total,
        "skipped": result.skipped_files,
        "failed": result.failed_batches,
    }


def render_markdown(
    result: AnalysisResult,
    *,
    limits: Optional[AnalysisLimits] = None,
    audit_context: Optional[AuditContext] = None,
) -> str:
    template = _environment().get_template(MARKDOWN_TEMPLATE)
    return template.render(**_report_context(result, limits, audit_context))


def render_html(
    result: AnalysisResult,
    *,
    limits: Optional[AnalysisLimits] = None,
    audit_context: Optional[AuditContext] = None,
) -> str:
    """Render a standalone page with summary cards and tabbed sections.

    Model-supplied text is HTML-escaped by the template environment.
    """
    template = _environment().get_template(HTML_TEMPLATE)
    return template.render(**_report_context(result, limits, audit_context))


def report_filename(output: OutputConfig, now: Optional[datetime] = None) -> str:
    stem = output.filename
    if output.include_timestamp:
        stamp = (now or datetime.now(UTC)).strftime("%Y%m%d-%H%M%S")
        stem = f"{stem}-{stamp}"
    return f"{stem}.{output.format}"


def write_report(
    result: AnalysisResult,
    output: OutputConfig,
    *,
    base_dir: Path,
    destination: Optional[Path] = None,
    limits: Optional[AnalysisLimits] = None,
    audit_context: Optional[AuditContext] = None,
) -> Path:
    """Render ``result`` in ``output.format`` and write it to disk.

    ``destination`` wins over the configured directory and filename.
    """
    if output.format not in FORMATS:
        raise ValueError(f"Unsupported report format: {output.format}")
    if destination is None:
        directory = Path(output.directory).expanduser() if output.directory else base_dir
        if not directory.is_absolute():
            directory = base_dir / directory
        destination = directory / report_filename(output)

    renderers = {"md": render_markdown, "html": render_html, "json": render_json}
    content = renderers[output.format](result, limits=limits, audit_context=audit_context)

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(content, encoding="utf-8")
    _LOGGER.info("Report written to %s", destination)
    return destination


__all__ = [
    "FORMATS",
    "build_payload",
    "render_html",
    "render_json",
    "render_markdown",
    "report_filename",
    "write_report",
]
