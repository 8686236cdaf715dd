"""Shared constants for oracle prompting."""

from __future__ import annotations

from ..models import FileGroup

CODE_ANALYSIS = "code_analysis"
PERFORMANCE_EXPERT = "performance_expert"

PROMPT_TEMPLATES: dict[str, str] = {
    CODE_ANALYSIS: "code_analysis.j2",
    PERFORMANCE_EXPERT: "performance_expert.j2",
}

GROUP_LABELS: dict[FileGroup, str] = {
    FileGroup.COMPONENT: "React/JSX component",
    FileGroup.TEMPLATE: "Vue/Svelte/Astro component",
    FileGroup.JAVASCRIPT: "JavaScript",
    FileGroup.TYPESCRIPT: "TypeScript",
    FileGroup.STYLESHEET: "stylesheet",
    FileGroup.MARKUP: "HTML",
}


__all__ = ["CODE_ANALYSIS", "GROUP_LABELS", "PERFORMANCE_EXPERT", "PROMPT_TEMPLATES"]
