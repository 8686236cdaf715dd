"""Validation of oracle responses against the batch that produced them."""

from .base import (
    LINE_OUT_OF_RANGE,
    MALFORMED,
    UNKNOWN_FILE,
    BatchIndex,
    RejectedRecord,
    is_batch_member,
    line_range_within,
    normalize_claimed_path,
)
from .response_parser import ParseOutcome, ResponseParser

__all__ = [
    "BatchIndex",
    "LINE_OUT_OF_RANGE",
    "MALFORMED",
    "ParseOutcome",
    "RejectedRecord",
    "ResponseParser",
    "UNKNOWN_FILE",
    "is_batch_member",
    "line_range_within",
    "normalize_claimed_path",
]
