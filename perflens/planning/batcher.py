"""Greedy batch packing under count, per-file, and cumulative size limits."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..logging import get_logger
from ..models import GROUP_ORDER, Batch, FileGroup, SourceFile
from .grouping import group_files


@dataclass
class BatchPlan:
    """Batches in execution order plus the files the planner left out."""

    batches: List[Batch] = field(default_factory=list)
    dropped: List[SourceFile] = field(default_factory=list)
    skipped: List[SourceFile] = field(default_factory=list)

    def by_group(self) -> Dict[FileGroup, List[Batch]]:
        grouped: Dict[FileGroup, List[Batch]] = {}
        for batch in self.batches:
            grouped.setdefault(batch.group, []).append(batch)
        return grouped

    @property
    def files(self) -> List[SourceFile]:
        return [item for batch in self.batches for item in batch.files]


class BatchPlanner:
    """Turns a prioritised file list into oracle-sized batches.

    ``token_budget`` is measured in bytes of file content, a proxy for the
    oracle's input capacity.
    """

    def __init__(
        self,
        *,
        max_files: int,
        batch_size: int,
        max_file_size: int,
        token_budget: int,
    ) -> None:
        if min(max_files, batch_size, max_file_size, token_budget) <= 0:
            raise ValueError("Batch planner limits must be positive")
        self.max_files = max_files
        self.batch_size = batch_size
        self.max_file_size = max_file_size
        self.token_budget = token_budget
        self.logger = get_logger("planning.batcher")

    def plan(self, prioritized: Sequence[SourceFile]) -> BatchPlan:
        """Trim to ``max_files``, group, and pack each group smallest-first."""
        selected = list(prioritized[: self.max_files])
        plan = BatchPlan(dropped=list(prioritized[self.max_files :]))
        for item in plan.dropped:
            self.logger.debug("Over file cap, not analysed: %s", item.relative_path)

        groups = group_files(selected)
        for group in GROUP_ORDER:
            members = groups.get(group) or []
            if not members:
                continue
            plan.batches.extend(self._pack(group, members, plan.skipped))
        self.logger.debug(
            "Planned %d batch(es) from %d file(s)", len(plan.batches), len(selected)
        )
        return plan

    def _pack(
        self,
        group: FileGroup,
        members: Sequence[SourceFile],
        skipped: List[SourceFile],
    ) -> List[Batch]:
        batches: List[Batch] = []
        current: List[SourceFile] = []
        current_size = 0

        for item in sorted(members, key=lambda member: member.size):
            if item.size > self.max_file_size:
                self.logger.debug(
                    "Skipping %s (%d bytes exceeds max file size %d)",
                    item.relative_path,
                    item.size,
                    self.max_file_size,
                )
                skipped.append(item)
                continue
            if item.size > self.token_budget:
                self.logger.debug(
                    "Skipping %s (%d bytes exceeds batch budget %d)",
                    item.relative_path,
                    item.size,
                    self.token_budget,
                )
                skipped.append(item)
                continue
            if current and (
                len(current) >= self.batch_size
                or current_size + item.size > self.token_budget
            ):
                batches.append(Batch(group=group, files=tuple(current)))
                current = []
                current_size = 0
            current.append(item)
            current_size += item.size

        if current:
            batches.append(Batch(group=group, files=tuple(current)))
        return batches


__all__ = ["BatchPlan", "BatchPlanner"]
