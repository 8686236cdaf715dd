"""Configuration loading for perflens (.perflens.yml and .perflensignore)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".perflens.yml"
IGNORE_FILENAME = ".perflensignore"
REPORT_FORMATS: tuple[str, ...] = ("md", "html", "json")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or holds invalid limits."""


DEFAULT_INCLUDE: tuple[str, ...] = (
    "**/*.js",
    "**/*.jsx",
    "**/*.ts",
    "**/*.tsx",
    "**/*.vue",
    "**/*.svelte",
    "**/*.astro",
    "**/*.css",
    "**/*.scss",
    "**/*.less",
    "**/*.sass",
    "**/*.html",
)

DEFAULT_IGNORE: tuple[str, ...] = (
    # build output and dependencies
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/.next/**",
    "**/.nuxt/**",
    "**/.svelte-kit/**",
    "**/.astro/**",
    # generated and minified
    "**/*.min.js",
    "**/*.bundle.js",
    "**/*.chunk.js",
    "**/*.map",
    "**/*.d.ts",
    # tests
    "**/*.test.*",
    "**/*.spec.*",
    "**/__tests__/**",
    "**/__mocks__/**",
    "**/test/**",
    "**/tests/**",
    # docs and examples
    "**/docs/**",
    "**/examples/**",
    "**/demo/**",
    "**/demos/**",
    # tooling config
    "**/*.config.*",
    "**/*.rc.*",
    "**/tsconfig.json",
    "**/package.json",
    "**/package-lock.json",
    "**/yarn.lock",
    "**/pnpm-lock.yaml",
    # editors and caches
    "**/.vscode/**",
    "**/.idea/**",
    "**/.DS_Store",
    "**/.cache/**",
    "**/.temp/**",
    "**/.tmp/**",
    "**/tmp/**",
    "**/temp/**",
)


@dataclass(frozen=True)
class AnalysisLimits:
    """Resource ceilings for a run. Sizes are bytes, ``batch_delay`` is seconds."""

    max_files: int = 200
    batch_size: int = 20
    max_file_size: int = 100 * 1024
    batch_delay: float = 1.0
    token_budget: int = 100 * 1024

    def __post_init__(self) -> None:
        for name in ("max_files", "batch_size", "max_file_size", "token_budget"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"analysis.{name} must be a positive integer (got {value!r})")
        if self.batch_delay < 0:
            raise ConfigError(f"analysis.batch_delay must not be negative (got {self.batch_delay!r})")


@dataclass
class AnalysisConfig:
    """Which directory to scan and which files qualify."""

    target_dir: str = "."
    limits: AnalysisLimits = field(default_factory=AnalysisLimits)
    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))


@dataclass
class LLMConfig:
    """Oracle provider settings."""

    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None


@dataclass
class OutputConfig:
    """Where and how the report is written."""

    format: str = "md"
    directory: Optional[str] = None
    filename: str = "performance-report"
    include_timestamp: bool = True


@dataclass
class PerflensConfig:
    """Represents the settings defined in .perflens.yml merged with defaults."""

    root: Path
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    llm: Optional[LLMConfig] = None
    output: OutputConfig = field(default_factory=OutputConfig)
    audit_context: Optional[Path] = None

    @property
    def target_path(self) -> Path:
        target = Path(self.analysis.target_dir).expanduser()
        if not target.is_absolute():
            target = self.root / target
        return target.resolve()


def load_config(config_path: Path) -> PerflensConfig:
    """Load configuration from disk, falling back to defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    ignore_extra = load_ignore_patterns(root)

    if not config_file.exists():
        config = PerflensConfig(root=root)
        config.analysis.ignore.extend(ignore_extra)
        return config

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    analysis_data = _as_dict(data.get("analysis"))
    analysis = AnalysisConfig()
    if analysis_data:
        analysis.target_dir = _as_str(analysis_data.get("target_dir")) or analysis.target_dir
        analysis.limits = _parse_limits(analysis_data, analysis.limits)
        include = _as_str_list(analysis_data.get("include"))
        if include:
            analysis.include = include
        ignore = _as_str_list(analysis_data.get("ignore"))
        if ignore:
            analysis.ignore = ignore
    # top-level `ignore` adds to, rather than replaces, the defaults
    analysis.ignore.extend(_as_str_list(data.get("ignore")))
    analysis.ignore.extend(ignore_extra)

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        llm = LLMConfig(
            provider=_as_str(llm_data.get("provider")),
            model=_as_str(llm_data.get("model")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )
        if not any(
            (
                llm.provider,
                llm.model,
                llm.temperature,
                llm.max_tokens,
                llm.base_url,
                llm.api_key,
                llm.request_timeout,
            )
        ):
            llm = None

    output_data = _as_dict(data.get("output"))
    output = OutputConfig()
    if output_data:
        fmt = (_as_str(output_data.get("format")) or output.format).lower()
        if fmt not in REPORT_FORMATS:
            raise ConfigError(
                f"output.format must be one of {', '.join(REPORT_FORMATS)} (got {fmt!r})"
            )
        output.format = fmt
        output.directory = _as_str(output_data.get("directory"))
        output.filename = _as_str(output_data.get("filename")) or output.filename
        include_timestamp = _as_bool(output_data.get("include_timestamp"))
        if include_timestamp is not None:
            output.include_timestamp = include_timestamp

    audit_str = _as_str(data.get("audit_context"))
    audit_context = (root / audit_str) if audit_str else None

    return PerflensConfig(
        root=root,
        analysis=analysis,
        llm=llm,
        output=output,
        audit_context=audit_context,
    )


def load_ignore_patterns(directory: Path) -> List[str]:
    """Return patterns from ``.perflensignore`` in ``directory``, skipping comments."""
    ignore_file = directory / IGNORE_FILENAME
    if not ignore_file.is_file():
        return []
    patterns: List[str] = []
    for raw_line in ignore_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


def override_limits(limits: AnalysisLimits, **overrides: Any) -> AnalysisLimits:
    """Return ``limits`` with every non-None override applied (CLI flags, API payloads)."""
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return limits
    return replace(limits, **changes)


def _parse_limits(data: Dict[str, Any], defaults: AnalysisLimits) -> AnalysisLimits:
    delay_ms = _as_float(data.get("batch_delay"))
    return override_limits(
        defaults,
        max_files=_as_int(data.get("max_files")),
        batch_size=_as_int(data.get("batch_size")),
        max_file_size=_as_int(data.get("max_file_size")),
        token_budget=_as_int(data.get("token_budget")),
        batch_delay=delay_ms / 1000.0 if delay_ms is not None else None,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalysisConfig",
    "AnalysisLimits",
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_IGNORE",
    "DEFAULT_INCLUDE",
    "LLMConfig",
    "OutputConfig",
    "PerflensConfig",
    "REPORT_FORMATS",
    "load_config",
    "load_ignore_patterns",
    "override_limits",
]
