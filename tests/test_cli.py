"""CLI behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from perflens import cli
from perflens.cli import _build_parser, main
from perflens.llm.runner import LLMRunner


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "scan"])
    assert args.verbose is True
    assert args.command == "scan"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["scan", "--verbose"])
    assert args.verbose is True
    assert args.command == "scan"


def test_cli_parses_scan_limits() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["scan", "web", "--max-files", "10", "--batch-size", "2", "--max-size", "50", "--batch-delay", "0"]
    )
    assert args.path == "web"
    assert (args.max_files, args.batch_size, args.max_size, args.batch_delay) == (10, 2, 50, 0)


def test_cli_accepts_log_file() -> None:
    parser = _build_parser()
    args = parser.parse_args(["scan", "--log-file", "run.log"])
    assert args.log_file == "run.log"


def test_cli_rejects_unknown_format() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["scan", "--format", "pdf"])


class _FakeRunner:
    def run(self, prompt: str, *, system: str | None = None) -> str:
        return "\n".join(
            [
                "\U0001f4a1 src/index.ts:1-1",
                "Description: Barrel import pulls in the whole library.",
                "Impact: Larger bundle.",
                "Code Context:",
                "```ts",
                "import * as lib from 'lib';",
                "```",
                "Solution: Import only what is used.",
                "Expected Improvement: Smaller bundle.",
            ]
        )


def test_scan_writes_json_report(repo_builder, tmp_path: Path, monkeypatch, capsys) -> None:
    repo_builder.write({"src/index.ts": "import * as lib from 'lib';\n"})
    monkeypatch.setattr(cli.LLMRunner, "from_config", classmethod(lambda cls, config, **_: _FakeRunner()))
    output = tmp_path / "out" / "report.json"

    main(
        [
            "scan",
            str(repo_builder.path()),
            "--batch-delay",
            "0",
            "--format",
            "json",
            "--output",
            str(output),
        ]
    )

    payload = json.loads(output.read_text(encoding="utf-8"))
    (issue,) = payload["codeAnalysis"]["suggestions"]
    assert issue["file"] == "src/index.ts"
    assert payload["metadata"]["cancelled"] is False
    assert payload["metadata"]["limits"]["batch_delay"] == 0
    out = capsys.readouterr().out
    assert "1 suggestion(s)" in out
    assert "Report written to" in out


def test_scan_reports_missing_directory(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli.LLMRunner, "from_config", classmethod(lambda cls, config, **_: _FakeRunner()))

    with pytest.raises(SystemExit) as excinfo:
        main(["scan", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "not found" in capsys.readouterr().err


def test_scan_reports_invalid_config(tmp_path: Path, capsys) -> None:
    (tmp_path / ".perflens.yml").write_text("- not a mapping\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["scan", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "mapping" in capsys.readouterr().err


def test_config_set_key_then_get_key_masks_value(capsys) -> None:
    main(["config", "set-key", "sk-live-abcdef123456", "--provider", "openai"])
    assert "OPENAI API key saved" in capsys.readouterr().out

    main(["config", "get-key", "--provider", "openai"])

    out = capsys.readouterr().out
    assert "Current OPENAI API key: sk-l...3456" in out
    assert "abcdef" not in out


def test_config_get_key_reports_missing_key(capsys) -> None:
    main(["config", "get-key", "--provider", "gemini"])

    out = capsys.readouterr().out
    assert "No API key configured for GEMINI" in out
    assert "perflens config set-key YOUR_API_KEY --provider gemini" in out


def test_config_set_key_rejects_unknown_provider() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["config", "set-key", "abc", "--provider", "mystery"])


def test_scan_uses_provider_and_model_from_config_file(repo_builder, tmp_path: Path, monkeypatch) -> None:
    repo_builder.write({"src/index.ts": "export {};\n"})
    (repo_builder.path() / ".perflens.yml").write_text(
        "llm:\n  provider: openai\n  model: gpt-4o-mini\n  api_key: file-key\n", encoding="utf-8"
    )
    built: list[LLMRunner] = []
    original = LLMRunner.from_config.__func__

    def _capture(cls, config, **overrides):
        runner = original(cls, config, **overrides)
        built.append(runner)
        return _FakeRunner()

    monkeypatch.setattr(cli.LLMRunner, "from_config", classmethod(_capture))

    main(["scan", str(repo_builder.path()), "--batch-delay", "0", "--output", str(tmp_path / "r.md")])

    (runner,) = built
    assert (runner.provider, runner.model, runner.api_key) == ("openai", "gpt-4o-mini", "file-key")
