"""Builds oracle requests for a batch from Jinja2 templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ..audit import AuditContext
from ..models import Batch, Severity
from .constants import CODE_ANALYSIS, GROUP_LABELS, PERFORMANCE_EXPERT, PROMPT_TEMPLATES

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


@dataclass
class PromptRequest:
    """Encapsulates the oracle request for one batch."""

    messages: List[PromptMessage]
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def system(self) -> Optional[str]:
        return next((m.content for m in self.messages if m.role == "system"), None)

    @property
    def prompt(self) -> str:
        return "\n\n".join(m.content for m in self.messages if m.role == "user")


class PromptRegistry:
    """Prompt templates keyed by name, loaded once at construction.

    A custom ``templates_dir`` shadows the bundled templates file by file.
    """

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        templates: Dict[str, str] | None = None,
    ) -> None:
        directories = []
        if templates_dir is not None:
            directories.append(str(templates_dir))
        directories.append(str(DEFAULT_TEMPLATES_DIR))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self._templates = dict(templates or PROMPT_TEMPLATES)
        for key, name in self._templates.items():
            try:
                self._env.get_template(name)
            except TemplateNotFound as exc:
                raise KeyError(f"Prompt template '{name}' for '{key}' not found") from exc

    def keys(self) -> List[str]:
        return list(self._templates)

    def has(self, key: str) -> bool:
        return key in self._templates

    def render(self, key: str, **context: object) -> str:
        name = self._templates.get(key)
        if name is None:
            raise KeyError(f"Prompt not found for key: {key}")
        return self._env.get_template(name).render(**context).strip()


def number_lines(text: str) -> str:
    """Prefix each line with its 1-based index, ``"<n>: "``."""
    return "\n".join(f"{index}: {line}" for index, line in enumerate(text.splitlines(), start=1))


class PromptBuilder:
    """Assembles the manifest, numbered contents, and audit context for a batch."""

    def __init__(self, registry: PromptRegistry | None = None) -> None:
        self.registry = registry or PromptRegistry()

    def build(self, batch: Batch, audit_context: AuditContext | None = None) -> PromptRequest:
        files = []
        for item in batch.files:
            text = batch.contents[item.relative_path]
            files.append(
                {
                    "path": item.relative_path,
                    "line_count": item.line_count,
                    "numbered": number_lines(text),
                }
            )

        audit_block = ""
        if audit_context is not None and not audit_context.is_empty:
            audit_block = audit_context.render()

        user_prompt = self.registry.render(
            CODE_ANALYSIS,
            group=batch.group.value,
            group_label=GROUP_LABELS.get(batch.group, batch.group.value),
            files=files,
            audit_context=audit_block,
            markers={severity.value: severity.marker for severity in Severity},
        )
        system_prompt = self.registry.render(PERFORMANCE_EXPERT)
        return PromptRequest(
            messages=[
                PromptMessage(role="system", content=system_prompt),
                PromptMessage(role="user", content=user_prompt),
            ],
            metadata={
                "group": batch.group.value,
                "files": [entry["path"] for entry in files],
                "total_size": batch.total_size,
            },
        )


__all__ = [
    "PromptBuilder",
    "PromptMessage",
    "PromptRegistry",
    "PromptRequest",
    "number_lines",
]
