"""Report rendering for analysis results."""

from .render import (
    FORMATS,
    build_payload,
    render_html,
    render_json,
    render_markdown,
    report_filename,
    write_report,
)

__all__ = [
    "FORMATS",
    "build_payload",
    "render_html",
    "render_json",
    "render_markdown",
    "report_filename",
    "write_report",
]
