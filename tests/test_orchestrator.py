"""End-to-end tests for the analysis orchestrator with a scripted oracle."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from perflens.config import AnalysisLimits
from perflens.models import Severity
from perflens.orchestrator import Orchestrator, RunState, analyze
from perflens.scanner import TargetDirectoryError
from perflens.scheduling import CancellationToken

_SECTION = re.compile(r"^=== (.+) ===$", re.MULTILINE)

NO_DELAY = AnalysisLimits(batch_delay=0)


def _record(marker: str, path: str, start: int, end: int) -> str:
    return "\n".join(
        [
            f"{marker} {path}:{start}-{end}",
            f"Description: Expensive work in {path}.",
            "Impact: Slows down rendering.",
            "Code Context:",
            "```",
            "code",
            "```",
            "Solution: Move it out of the hot path.",
            "Expected Improvement: Faster renders.",
        ]
    )


class ScriptedOracle:
    """Answers each request with one critical issue per listed file."""

    def __init__(self, fail_on: tuple[int, ...] = ()) -> None:
        self.fail_on = fail_on
        self.prompts: list[str] = []

    def run(self, prompt: str, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        if len(self.prompts) in self.fail_on:
            raise RuntimeError("provider unavailable")
        paths = _SECTION.findall(prompt)
        return "\n\n".join(_record("\U0001f6a8", path, 1, 1) for path in paths)

    @property
    def batches(self) -> list[list[str]]:
        return [_SECTION.findall(prompt) for prompt in self.prompts]


class RecordingToken(CancellationToken):
    def __init__(self, cancel_on_wait: int | None = None) -> None:
        super().__init__()
        self.waits: list[float] = []
        self.cancel_on_wait = cancel_on_wait

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if self.cancel_on_wait is not None and len(self.waits) >= self.cancel_on_wait:
            self.cancel()
        return self.cancelled


def test_component_analysed_and_oversize_stylesheet_skipped(repo_builder) -> None:
    repo_builder.write(
        {
            "src/App.tsx": """
            export function App({ items }) {
              return items.map((item) => <Row key={item.id} {...item} />);
            }
            """
        }
    )
    repo_builder.write_sized("src/big.css", 200 * 1024)
    oracle = ScriptedOracle()

    with Orchestrator(oracle) as orchestrator:
        result = orchestrator.analyze(repo_builder.path(), NO_DELAY)
        assert orchestrator.state is RunState.DONE

    assert oracle.batches == [["src/App.tsx"]]
    assert [issue.location for issue in result.critical] == ["src/App.tsx:1-1"]
    assert result.warnings == [] and result.suggestions == []
    assert list(result.file_issues) == ["src/App.tsx"]
    assert result.file_issues["src/App.tsx"].total == 1
    assert result.skipped_files == ["src/big.css"]
    assert result.analyzed_files == ["src/App.tsx"]
    assert result.batch_count == 1
    assert result.cancelled is False
    assert result.target == str(repo_builder.path().resolve())


def test_failed_batch_is_isolated(repo_builder, caplog) -> None:
    repo_builder.write({f"src/mod{n}.ts": f"export const v{n} = {n};\n" for n in range(3)})
    oracle = ScriptedOracle(fail_on=(2,))
    limits = AnalysisLimits(batch_size=1, batch_delay=0)

    result = analyze(repo_builder.path(), limits, runner=oracle)

    assert len(oracle.prompts) == 3
    failed_paths = oracle.batches[1]
    assert len(result.failed_batches) == 1
    assert failed_paths[0] in result.failed_batches[0]
    reported = sorted(issue.file for issue in result.critical)
    assert reported == sorted(path for batch in (oracle.batches[0], oracle.batches[2]) for path in batch)
    assert set(result.file_issues) == {"src/mod0.ts", "src/mod1.ts", "src/mod2.ts"}
    assert result.file_issues[failed_paths[0]].total == 0
    assert "provider unavailable" in caplog.text


def test_delay_applies_between_batches_of_the_same_group(repo_builder) -> None:
    repo_builder.write(
        {
            "src/A.tsx": "export const A = 1;\n",
            "src/B.tsx": "export const B = 2;\n",
            "src/c.ts": "export const c = 3;\n",
            "src/d.ts": "export const d = 4;\n",
        }
    )
    token = RecordingToken()
    limits = AnalysisLimits(batch_size=1, batch_delay=0.25)

    with Orchestrator(ScriptedOracle()) as orchestrator:
        result = orchestrator.analyze(repo_builder.path(), limits, cancel=token)

    assert result.batch_count == 4
    assert token.waits == [0.25, 0.25]


def test_cancellation_returns_partial_result(repo_builder) -> None:
    repo_builder.write({f"src/part{n}.ts": f"export const p{n} = {n};\n" for n in range(3)})
    oracle = ScriptedOracle()
    token = RecordingToken(cancel_on_wait=1)
    limits = AnalysisLimits(batch_size=1, batch_delay=0.1)

    with Orchestrator(oracle) as orchestrator:
        result = orchestrator.analyze(repo_builder.path(), limits, cancel=token)

    assert result.cancelled is True
    assert len(oracle.prompts) == 1
    assert [issue.file for issue in result.critical] == oracle.batches[0]
    assert result.batch_count == 3


def test_pre_cancelled_run_sends_nothing(repo_builder) -> None:
    repo_builder.write({"src/index.ts": "export {};\n"})
    oracle = ScriptedOracle()
    token = CancellationToken()
    token.cancel()

    result = analyze(repo_builder.path(), NO_DELAY, runner=oracle, cancel=token)

    assert result.cancelled is True
    assert oracle.prompts == []
    assert result.total == 0


def test_every_global_issue_lands_in_one_per_file_bucket(repo_builder) -> None:
    repo_builder.write(
        {
            "src/index.ts": "a\nb\nc\n",
            "src/App.tsx": "a\nb\n",
            "src/theme.css": "a\n",
        }
    )

    class MixedOracle(ScriptedOracle):
        def run(self, prompt: str, *, system: str | None = None) -> str:
            self.prompts.append(prompt)
            records = []
            for path in _SECTION.findall(prompt):
                records.append(_record("\U0001f6a8", path, 1, 1))
                records.append(_record("\u26a0\ufe0f", f"./{path}", 1, 1))
                records.append(_record("\U0001f4a1", path, 1, 99))
                records.append(_record("\U0001f4a1", "src/ghost.ts", 1, 1))
            return "\n\n".join(records)

    result = analyze(repo_builder.path(), NO_DELAY, runner=MixedOracle())

    for severity in Severity:
        global_issues = getattr(result, severity.bucket)
        per_file = [
            issue for bucket in result.file_issues.values() for issue in getattr(bucket, severity.bucket)
        ]
        assert sorted(map(id, global_issues)) == sorted(map(id, per_file))
    assert len(result.critical) == 3
    assert len(result.warnings) == 3
    assert result.suggestions == []
    assert result.rejected_count == 6
    assert all(issue.file in result.analyzed_files for issue in result.warnings)


def test_missing_target_directory_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(TargetDirectoryError):
        analyze(tmp_path / "missing", NO_DELAY, runner=ScriptedOracle())
