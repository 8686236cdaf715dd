"""Run orchestration: discover, score, batch, then drive the oracle batch by batch."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from .audit import AuditContext
from .config import DEFAULT_IGNORE, DEFAULT_INCLUDE, AnalysisLimits
from .llm.adapter import OracleAdapter
from .llm.runner import LLMRunner, OracleError
from .logging import get_logger
from .models import AnalysisResult, Batch, FileIssues
from .planning import BatchPlan, BatchPlanner, prioritize
from .prompting.builder import PromptBuilder
from .scanner import FileScanner
from .scheduling import AnalysisCancelled, CancellationToken
from .validators import BatchIndex, ResponseParser


class RunState(str, Enum):
    """Lifecycle of a single analysis run."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    SCORING = "scoring"
    BATCHING = "batching"
    EXECUTING = "executing"
    DONE = "done"


def describe_batch(batch: Batch, number: int) -> str:
    paths = ", ".join(item.relative_path for item in batch.files)
    return f"{batch.group.value} batch {number} ({paths})"


class Orchestrator:
    """Coordinates a code-analysis run from file discovery to aggregated findings."""

    def __init__(
        self,
        runner: LLMRunner | None = None,
        *,
        scanner: FileScanner | None = None,
        prompt_builder: PromptBuilder | None = None,
        parser: ResponseParser | None = None,
        adapter: OracleAdapter | None = None,
    ) -> None:
        self.scanner = scanner or FileScanner()
        self.parser = parser or ResponseParser()
        if adapter is None:
            adapter = OracleAdapter(runner or LLMRunner(), prompt_builder)
        self.adapter = adapter
        self.logger = get_logger("orchestrator")
        self.state = RunState.IDLE

    def analyze(
        self,
        target_dir: str | Path,
        limits: AnalysisLimits | None = None,
        include: Sequence[str] = DEFAULT_INCLUDE,
        ignore: Sequence[str] = DEFAULT_IGNORE,
        audit_context: AuditContext | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> AnalysisResult:
        """Analyse ``target_dir`` and return the aggregated findings.

        ``TargetDirectoryError`` propagates. Oracle failures only cost the
        affected batch. A fired ``cancel`` token ends the run early with the
        findings gathered so far and ``cancelled`` set.
        """
        limits = limits or AnalysisLimits()
        token = cancel or CancellationToken()
        started = time.monotonic()
        result = AnalysisResult(started_at=datetime.now(UTC))
        self.state = RunState.IDLE

        self._transition(RunState.DISCOVERING)
        scan = self.scanner.scan(
            target_dir,
            include=include,
            ignore=ignore,
            max_file_size=limits.max_file_size,
        )
        result.target = str(scan.root)
        result.skipped_files.extend(scan.skipped)
        self.logger.info("Found %d candidate file(s) under %s", len(scan.files), scan.root)

        self._transition(RunState.SCORING)
        prioritized = prioritize(scan.files)

        self._transition(RunState.BATCHING)
        plan = BatchPlanner(
            max_files=limits.max_files,
            batch_size=limits.batch_size,
            max_file_size=limits.max_file_size,
            token_budget=limits.token_budget,
        ).plan(prioritized)
        result.skipped_files.extend(item.relative_path for item in plan.skipped)
        result.skipped_files.extend(item.relative_path for item in plan.dropped)
        result.batch_count = len(plan.batches)

        self._transition(RunState.EXECUTING)
        try:
            self._execute(plan, scan.root, limits, audit_context, token, result)
        except AnalysisCancelled:
            result.cancelled = True
            self.logger.warning(
                "Analysis cancelled; returning %d finding(s) from completed batches", result.total
            )

        self._transition(RunState.DONE)
        result.duration = time.monotonic() - started
        self.logger.info(
            "Analysis finished: %d critical, %d warning(s), %d suggestion(s) across %d file(s)",
            len(result.critical),
            len(result.warnings),
            len(result.suggestions),
            len(result.analyzed_files),
        )
        return result

    def _execute(
        self,
        plan: BatchPlan,
        root: Path,
        limits: AnalysisLimits,
        audit_context: AuditContext | None,
        token: CancellationToken,
        result: AnalysisResult,
    ) -> None:
        number = 0
        for group, batches in plan.by_group().items():
            self.logger.info("Analysing %d %s batch(es)", len(batches), group.value)
            for position, batch in enumerate(batches):
                token.raise_if_cancelled()
                number += 1
                self._run_batch(batch, number, root, audit_context, token, result)
                is_last_in_group = position == len(batches) - 1
                if not is_last_in_group and token.wait(limits.batch_delay):
                    raise AnalysisCancelled("Analysis cancelled between batches")

    def _run_batch(
        self,
        batch: Batch,
        number: int,
        root: Path,
        audit_context: AuditContext | None,
        token: CancellationToken,
        result: AnalysisResult,
    ) -> None:
        label = describe_batch(batch, number)
        for item in batch.files:
            result.analyzed_files.append(item.relative_path)
            result.file_issues.setdefault(item.relative_path, FileIssues())

        try:
            response = self.adapter.invoke(batch, audit_context, cancel=token)
        except OracleError as exc:
            self.logger.warning("Oracle failed for %s: %s", label, exc)
            result.failed_batches.append(label)
            return

        outcome = self.parser.parse(response, BatchIndex.for_batch(batch, root))
        for issue in outcome.issues:
            result.add(issue)
        result.rejected_count += len(outcome.rejected)
        self.logger.debug(
            "%s yielded %d issue(s), %d rejected record(s)",
            label,
            len(outcome.issues),
            len(outcome.rejected),
        )

    def _transition(self, state: RunState) -> None:
        self.logger.debug("Run state %s -> %s", self.state.value, state.value)
        self.state = state

    def close(self) -> None:
        self.adapter.close()

    def __enter__(self) -> "Orchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def analyze(
    target_dir: str | Path,
    limits: AnalysisLimits | None = None,
    include: Optional[Sequence[str]] = None,
    ignore: Optional[Sequence[str]] = None,
    audit_context: AuditContext | None = None,
    *,
    runner: LLMRunner | None = None,
    cancel: CancellationToken | None = None,
) -> AnalysisResult:
    """Run a complete analysis with a fresh orchestrator."""
    with Orchestrator(runner) as orchestrator:
        return orchestrator.analyze(
            target_dir,
            limits,
            DEFAULT_INCLUDE if include is None else include,
            DEFAULT_IGNORE if ignore is None else ignore,
            audit_context,
            cancel=cancel,
        )


__all__ = ["Orchestrator", "RunState", "analyze", "describe_batch"]
