"""File prioritisation, grouping, and batch planning."""

from .batcher import BatchPlan, BatchPlanner
from .grouping import classify, group_files
from .scoring import prioritize, score

__all__ = [
    "BatchPlan",
    "BatchPlanner",
    "classify",
    "group_files",
    "prioritize",
    "score",
]
