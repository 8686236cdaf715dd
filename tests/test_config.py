"""Tests for perflens.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from perflens.config import (
    DEFAULT_IGNORE,
    DEFAULT_INCLUDE,
    AnalysisLimits,
    ConfigError,
    LLMConfig,
    PerflensConfig,
    load_config,
    override_limits,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, PerflensConfig)
    assert config.root == tmp_path.resolve()
    assert config.llm is None
    assert config.analysis.limits == AnalysisLimits()
    assert config.analysis.include == list(DEFAULT_INCLUDE)
    assert config.analysis.ignore == list(DEFAULT_IGNORE)
    assert config.output.format == "md"
    assert config.audit_context is None
    assert config.target_path == tmp_path.resolve()


def test_default_limits_follow_documented_values() -> None:
    limits = AnalysisLimits()

    assert limits.max_files == 200
    assert limits.batch_size == 20
    assert limits.max_file_size == 102400
    assert limits.batch_delay == pytest.approx(1.0)
    assert limits.token_budget == 102400


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".perflens.yml"
    config_file.write_text(
        """
analysis:
  target_dir: "web"
  max_files: 50
  batch_size: 5
  max_file_size: 2048
  token_budget: 8192
  batch_delay: 250
  include: ["**/*.tsx"]
llm:
  provider: "openai"
  model: "gpt-4o-mini"
  temperature: 0.1
  max_tokens: 2048
  base_url: "http://localhost:8080/v1"
  api_key: "test-key"
  request_timeout: 30
output:
  format: json
  directory: reports
  filename: perf
  include_timestamp: false
audit_context: lighthouse.json
ignore:
  - "**/legacy/**"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    limits = config.analysis.limits
    assert (limits.max_files, limits.batch_size, limits.max_file_size, limits.token_budget) == (
        50,
        5,
        2048,
        8192,
    )
    assert limits.batch_delay == pytest.approx(0.25)
    assert config.analysis.include == ["**/*.tsx"]
    assert config.analysis.ignore[-1] == "**/legacy/**"
    assert "**/node_modules/**" in config.analysis.ignore
    assert config.target_path == (tmp_path / "web").resolve()

    assert isinstance(config.llm, LLMConfig)
    assert config.llm.provider == "openai"
    assert config.llm.model == "gpt-4o-mini"
    assert config.llm.temperature == pytest.approx(0.1)
    assert config.llm.max_tokens == 2048
    assert config.llm.base_url == "http://localhost:8080/v1"
    assert config.llm.api_key == "test-key"
    assert config.llm.request_timeout == pytest.approx(30.0)

    assert config.output.format == "json"
    assert config.output.directory == "reports"
    assert config.output.filename == "perf"
    assert config.output.include_timestamp is False
    assert config.audit_context == tmp_path.resolve() / "lighthouse.json"


def test_analysis_ignore_replaces_defaults(tmp_path: Path) -> None:
    (tmp_path / ".perflens.yml").write_text(
        "analysis:\n  ignore: ['**/vendor/**']\n", encoding="utf-8"
    )

    config = load_config(tmp_path)

    assert config.analysis.ignore == ["**/vendor/**"]


def test_perflensignore_patterns_are_appended(tmp_path: Path) -> None:
    (tmp_path / ".perflensignore").write_text(
        "# generated code\n**/generated/**\n\n**/*.stories.tsx\n", encoding="utf-8"
    )

    config = load_config(tmp_path)

    assert config.analysis.ignore[-2:] == ["**/generated/**", "**/*.stories.tsx"]


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".perflens.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".perflens.yml").write_text("analysis: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_non_positive_limits(tmp_path: Path) -> None:
    (tmp_path / ".perflens.yml").write_text("analysis:\n  batch_size: 0\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_accepts_html_output(tmp_path: Path) -> None:
    (tmp_path / ".perflens.yml").write_text("output:\n  format: HTML\n", encoding="utf-8")

    assert load_config(tmp_path).output.format == "html"


def test_load_config_rejects_unknown_output_format(tmp_path: Path) -> None:
    (tmp_path / ".perflens.yml").write_text("output:\n  format: pdf\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_override_limits_ignores_unset_values() -> None:
    limits = AnalysisLimits()

    updated = override_limits(limits, max_files=10, batch_size=None)

    assert updated.max_files == 10
    assert updated.batch_size == limits.batch_size
    assert override_limits(limits) is limits
