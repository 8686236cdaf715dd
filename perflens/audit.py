"""Runtime audit context (Lighthouse) consumed by the code-analysis prompt."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from .logging import get_logger

_LOGGER = get_logger("audit")

# Lighthouse audits surfaced in the metrics summary, in display order.
_METRIC_AUDITS: tuple[tuple[str, str], ...] = (
    ("first-contentful-paint", "First Contentful Paint"),
    ("largest-contentful-paint", "Largest Contentful Paint"),
    ("total-blocking-time", "Total Blocking Time"),
    ("cumulative-layout-shift", "Cumulative Layout Shift"),
    ("speed-index", "Speed Index"),
    ("interactive", "Time to Interactive"),
)


class AuditContextError(RuntimeError):
    """Raised when an audit context file cannot be read or understood."""


@dataclass
class AuditContext:
    """Metrics summary plus named analysis sections from a runtime audit."""

    metrics: str = ""
    analysis: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.metrics.strip() and not any(text.strip() for text in self.analysis.values())

    def render(self) -> str:
        """Return the verbatim block appended to oracle requests."""
        parts = []
        if self.metrics.strip():
            parts.append(f"Metrics:\n{self.metrics.strip()}")
        for name, text in self.analysis.items():
            if text.strip():
                parts.append(f"{name}:\n{text.strip()}")
        return "\n\n".join(parts)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "AuditContext":
        if "audits" in payload and "categories" in payload:
            return cls(metrics=summarize_lighthouse(payload))
        metrics = payload.get("metrics")
        analysis = payload.get("analysis")
        sections: Dict[str, str] = {}
        if isinstance(analysis, Mapping):
            sections = {str(key): str(value) for key, value in analysis.items() if value is not None}
        elif isinstance(analysis, str):
            sections = {"Analysis": analysis}
        return cls(metrics=str(metrics) if metrics is not None else "", analysis=sections)


def summarize_lighthouse(report: Mapping[str, Any]) -> str:
    """Condense a Lighthouse JSON result into the metrics lines used in prompts."""
    categories = report.get("categories") or {}
    performance = categories.get("performance") or {}
    raw_score = performance.get("score")
    score = float(raw_score) * 100 if isinstance(raw_score, (int, float)) else 0.0

    audits = report.get("audits") or {}
    lines = [f"Performance Score: {score:.0f}%"]
    for key, label in _METRIC_AUDITS:
        audit = audits.get(key) or {}
        display = audit.get("displayValue") if isinstance(audit, Mapping) else None
        lines.append(f"{label}: {display or 'N/A'}")
    return "\n".join(lines)


def load_audit_context(path: Path) -> AuditContext:
    """Read an audit context from JSON: either ``{metrics, analysis}`` or a raw Lighthouse result."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise AuditContextError(f"Audit context file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise AuditContextError(f"Unable to read audit context {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise AuditContextError(f"Audit context {path} must contain a JSON object")
    context = AuditContext.from_mapping(payload)
    _LOGGER.debug("Loaded audit context from %s", path)
    return context


__all__ = ["AuditContext", "AuditContextError", "load_audit_context", "summarize_lighthouse"]
