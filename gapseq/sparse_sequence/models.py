# -*- coding: utf-8 -*-
"""
Sparse Sequence Data Models - gapseq

Pydantic v2 models for the bounded-gap sequence engine:

    - HoleRun: one maximal run of consecutive holes
    - SequenceProfile: every derived attribute of a candidate sequence
    - SpliceOutcome: result of a splice performed through the service
    - MatchOutcome: result of a subsequence test performed through the service
    - SparseSequenceStatistics: running counters kept by the service
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class HoleRun(BaseModel):
    """A maximal block of consecutive absent positions.

    Attributes:
        start: First absent position (1-based).
        size: Number of consecutive absent positions.
    """
    start: int = Field(..., ge=1)
    size: int = Field(..., ge=1)

    @property
    def end(self) -> int:
        """Last absent position of the run (inclusive)."""
        return self.start + self.size - 1


class SequenceProfile(BaseModel):
    """Derived attributes of a candidate bounded-gap sequence.

    Attributes:
        shape_ok: True when the input is a mapping keyed by integers >= 1.
        is_valid: True when shape_ok and both limits hold.
        length: Highest populated position (0 when empty or shape fails).
        present_count: Number of populated positions.
        hole_count: Number of absent positions within 1..length.
        max_hole_run: Size of the largest hole run.
        hole_ratio: hole_count / length (0.0 for the empty sequence).
        hole_runs: All hole runs in ascending position order.
        max_nil_gap: Hole run limit the profile was checked against.
        max_nil_ratio: Hole ratio limit the profile was checked against.
        violations: Human-readable reasons when is_valid is False.
    """
    shape_ok: bool = Field(default=False)
    is_valid: bool = Field(default=False)
    length: int = Field(default=0, ge=0)
    present_count: int = Field(default=0, ge=0)
    hole_count: int = Field(default=0, ge=0)
    max_hole_run: int = Field(default=0, ge=0)
    hole_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    hole_runs: List[HoleRun] = Field(default_factory=list)
    max_nil_gap: int = Field(default=0)
    max_nil_ratio: float = Field(default=0.0)
    violations: List[str] = Field(default_factory=list)


class SpliceOutcome(BaseModel):
    """Result of a splice performed through the service facade.

    Attributes:
        success: True when the splice was applied.
        index: Splice position.
        count: Holes inserted (positive) or removed (negative).
        length_before: Sequence length before the call (None if invalid).
        length_after: Sequence length after the call (None on failure).
        error_code: Error code of the failure, if any.
        error_message: Error message of the failure, if any.
        error_context: Error context of the failure, if any.
        processing_time_ms: Processing duration in milliseconds.
        provenance_hash: SHA-256 provenance hash.
    """
    success: bool = Field(default=False)
    index: Any = Field(default=None)
    count: Any = Field(default=None)
    length_before: Optional[int] = Field(default=None)
    length_after: Optional[int] = Field(default=None)
    error_code: Optional[str] = Field(default=None)
    error_message: Optional[str] = Field(default=None)
    error_context: Dict[str, Any] = Field(default_factory=dict)
    processing_time_ms: float = Field(default=0.0)
    provenance_hash: str = Field(default="")


class MatchOutcome(BaseModel):
    """Result of a subsequence test performed through the service facade."""
    matched: bool = Field(default=False)
    require_order: bool = Field(default=False)
    haystack_length: Optional[int] = Field(default=None)
    needle_length: Optional[int] = Field(default=None)
    processing_time_ms: float = Field(default=0.0)
    provenance_hash: str = Field(default="")


class SparseSequenceStatistics(BaseModel):
    """Running counters kept by the service facade.

    Attributes:
        total_validations: Validity checks performed.
        valid_sequences: Checks that found a valid sequence.
        invalid_sequences: Checks that rejected the input.
        total_splices: Splices attempted.
        failed_splices: Splices that returned an error.
        errors_by_type: Splice failures keyed by exception class name.
        total_matches: Subsequence tests performed.
        positive_matches: Subsequence tests that matched.
        avg_sequence_length: Running mean length of valid sequences.
        started_at: Service creation timestamp.
    """
    total_validations: int = Field(default=0)
    valid_sequences: int = Field(default=0)
    invalid_sequences: int = Field(default=0)
    total_splices: int = Field(default=0)
    failed_splices: int = Field(default=0)
    errors_by_type: Dict[str, int] = Field(default_factory=dict)
    total_matches: int = Field(default=0)
    positive_matches: int = Field(default=0)
    avg_sequence_length: float = Field(default=0.0)
    started_at: datetime = Field(default_factory=_utcnow)


__all__ = [
    "HoleRun",
    "SequenceProfile",
    "SpliceOutcome",
    "MatchOutcome",
    "SparseSequenceStatistics",
]
