# -*- coding: utf-8 -*-
"""
Sparse Sequence Service Setup - gapseq

Provides the ``SparseSequenceService`` facade that wraps the pure
sequence functions (validation, profiling, splicing, subsequence tests)
with timing, Prometheus metrics, SHA-256 provenance records and running
statistics, plus ``get_service()`` for thread-safe singleton access.

The pure functions in ``validator``, ``splice_engine`` and
``subsequence_matcher`` stay free of side effects; everything observable
about an operation is recorded here.

Usage:
    >>> from gapseq.sparse_sequence.setup import get_service
    >>> service = get_service()
    >>> row = {1: "a", 2: "b"}
    >>> service.splice(row, 2, 1).success
    True
    >>> row
    {1: 'a', 3: 'b'}
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import deque
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from pydantic import BaseModel

from gapseq.exceptions import SequenceException
from gapseq.sparse_sequence.config import (
    PROVENANCE_MAX_ENTRIES,
    SparseSequenceConfig,
    get_config,
)
from gapseq.sparse_sequence.metrics import (
    PROMETHEUS_AVAILABLE,
    record_match,
    record_processing_duration,
    record_splice,
    record_splice_error,
    record_validation,
)
from gapseq.sparse_sequence.models import (
    MatchOutcome,
    SequenceProfile,
    SparseSequenceStatistics,
    SpliceOutcome,
)
from gapseq.sparse_sequence.splice_engine import splice_or_raise
from gapseq.sparse_sequence.subsequence_matcher import is_subsequence_of
from gapseq.sparse_sequence.validator import (
    profile_sequence,
    sequence_length,
    sorted_positions,
)

logger = logging.getLogger(__name__)


# ===================================================================
# Provenance helper
# ===================================================================


def _sha256_of(payload: Any) -> str:
    """Hex SHA-256 of ``payload`` in canonical JSON form.

    Pydantic models are dumped in JSON mode first. Values JSON cannot
    encode fall back to their ``repr``.
    """
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    canonical = json.dumps(
        payload, sort_keys=True, separators=(",", ":"), default=repr,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class _ProvenanceTracker:
    """Provenance trail of SHA-256 audit entries, newest last.

    Only the most recent ``max_entries`` entries are retained.

    Attributes:
        entries: Retained provenance entries.
        entry_count: Number of entries recorded since creation, including
            those no longer retained.
    """

    def __init__(self, max_entries: int = PROVENANCE_MAX_ENTRIES) -> None:
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self.entry_count: int = 0

    @property
    def max_entries(self) -> Optional[int]:
        return self._entries.maxlen

    @property
    def entries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._entries)

    def record(
        self,
        entity_type: str,
        action: str,
        data_hash: str,
        user_id: str = "system",
    ) -> str:
        """Record a provenance entry and return its hash.

        Args:
            entity_type: Type of entity (sequence, splice, match).
            action: Action performed (validate, profile, insert, remove, match).
            data_hash: SHA-256 hash of associated data.
            user_id: User or system that performed the action.

        Returns:
            SHA-256 hash of the provenance entry itself.
        """
        entry = {
            "entity_type": entity_type,
            "action": action,
            "data_hash": data_hash,
            "user_id": user_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        entry["entry_hash"] = _sha256_of(entry)
        with self._lock:
            self._entries.append(entry)
            self.entry_count += 1
        return entry["entry_hash"]


# ===================================================================
# SparseSequenceService facade
# ===================================================================

# Thread-safe singleton lock
_singleton_lock = threading.Lock()
_singleton_instance: Optional["SparseSequenceService"] = None


def _fingerprint(collection: Any) -> Any:
    """Reduce an arbitrary collection to JSON-safe data for hashing.

    Keys of a mapping may be of mixed types, so entries are ordered by
    their ``repr`` rather than by value.
    """
    if isinstance(collection, Mapping):
        entries = sorted((repr(key), repr(value)) for key, value in collection.items())
        return {"type": type(collection).__name__, "entries": entries}
    return {"type": type(collection).__name__, "value": repr(collection)}


def _splice_operation(count: Any) -> str:
    if isinstance(count, int) and not isinstance(count, bool):
        if count > 0:
            return "insert"
        if count < 0:
            return "remove"
        return "noop"
    return "invalid"


class SparseSequenceService:
    """Unified facade over the sparse sequence functions.

    Each method records provenance, updates statistics and, when
    ``config.enable_metrics`` is set, Prometheus metrics.

    Attributes:
        config: SparseSequenceConfig instance.
        provenance: _ProvenanceTracker instance for SHA-256 audit trails.

    Example:
        >>> service = SparseSequenceService()
        >>> service.validate({1: "a", 3: "c"})
        True
        >>> service.get_statistics().valid_sequences
        1
    """

    def __init__(
        self,
        config: Optional[SparseSequenceConfig] = None,
    ) -> None:
        """Initialize the service facade.

        Args:
            config: Optional configuration. Uses global config if None.
        """
        self.config = config or get_config()
        self.provenance = _ProvenanceTracker(self.config.provenance_max_entries)
        self._stats = SparseSequenceStatistics()
        self._stats_lock = threading.Lock()

        logger.info("SparseSequenceService facade created")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def length(
        self,
        collection: Any,
        max_nil_gap: Optional[int] = None,
        max_nil_ratio: Optional[float] = None,
    ) -> Optional[int]:
        """Return the sequence length, or None if ``collection`` is invalid.

        Limits default to this service's configuration.
        """
        start_time = time.time()
        if max_nil_gap is None:
            max_nil_gap = self.config.max_nil_gap
        if max_nil_ratio is None:
            max_nil_ratio = self.config.max_nil_ratio

        result = sequence_length(collection, max_nil_gap, max_nil_ratio)
        valid = result is not None

        self.provenance.record(
            entity_type="sequence",
            action="validate",
            data_hash=_sha256_of({
                "sequence": _fingerprint(collection),
                "length": result,
            }),
        )
        with self._stats_lock:
            self._stats.total_validations += 1
            if valid:
                self._stats.valid_sequences += 1
                self._update_avg_length(result)
            else:
                self._stats.invalid_sequences += 1

        if self.config.enable_metrics:
            record_validation(valid, result or 0)
            record_processing_duration("validate", time.time() - start_time)
        return result

    def validate(
        self,
        collection: Any,
        max_nil_gap: Optional[int] = None,
        max_nil_ratio: Optional[float] = None,
    ) -> bool:
        """Return True if ``collection`` is a valid bounded-gap sequence."""
        return self.length(collection, max_nil_gap, max_nil_ratio) is not None

    def profile(
        self,
        collection: Any,
        max_nil_gap: Optional[int] = None,
        max_nil_ratio: Optional[float] = None,
    ) -> SequenceProfile:
        """Profile a candidate sequence (see ``profile_sequence``).

        Args:
            collection: Candidate sequence.
            max_nil_gap: Hole run limit (service default when None).
            max_nil_ratio: Hole ratio limit (service default when None).

        Returns:
            SequenceProfile describing the candidate.
        """
        start_time = time.time()
        if max_nil_gap is None:
            max_nil_gap = self.config.max_nil_gap
        if max_nil_ratio is None:
            max_nil_ratio = self.config.max_nil_ratio

        result = profile_sequence(collection, max_nil_gap, max_nil_ratio)

        self.provenance.record(
            entity_type="sequence",
            action="profile",
            data_hash=_sha256_of(result),
        )
        if self.config.enable_metrics:
            record_processing_duration("profile", time.time() - start_time)

        logger.debug(
            "Profiled sequence: length=%d holes=%d valid=%s",
            result.length, result.hole_count, result.is_valid,
        )
        return result

    # ------------------------------------------------------------------
    # Splicing
    # ------------------------------------------------------------------

    def splice(
        self,
        collection: Any,
        index: Any,
        count: Any,
        max_nil_gap: Optional[int] = None,
        max_nil_ratio: Optional[float] = None,
    ) -> SpliceOutcome:
        """Insert or remove holes in place and report the outcome.

        Limits default to this service's splice configuration. Failures
        are reported in the outcome, never raised; the collection is
        unchanged whenever ``success`` is False.

        Args:
            collection: Mutable mapping holding a bounded-gap sequence.
            index: 1-based splice position.
            count: Holes to insert (positive) or remove (negative).
            max_nil_gap: Hole run limit.
            max_nil_ratio: Hole ratio limit.

        Returns:
            SpliceOutcome with lengths before and after the call.
        """
        start_time = time.time()
        if max_nil_gap is None:
            max_nil_gap = self.config.splice_max_nil_gap
        if max_nil_ratio is None:
            max_nil_ratio = self.config.splice_max_nil_ratio
        operation = _splice_operation(count)

        length_before = sequence_length(collection, max_nil_gap, max_nil_ratio)
        outcome = SpliceOutcome(
            index=index if isinstance(index, int) else repr(index),
            count=count if isinstance(count, int) else repr(count),
            length_before=length_before,
        )
        error_type: Optional[str] = None
        try:
            splice_or_raise(collection, index, count, max_nil_gap, max_nil_ratio)
        except SequenceException as exc:
            error_type = type(exc).__name__
            outcome.error_code = exc.error_code
            outcome.error_message = exc.message
            outcome.error_context = exc.context
            logger.info("Splice rejected: %s", exc)
        else:
            outcome.success = True
            outcome.length_after = sequence_length(
                collection, max_nil_gap, max_nil_ratio,
            )

        outcome.processing_time_ms = round((time.time() - start_time) * 1000.0, 3)
        outcome.provenance_hash = _sha256_of(outcome)
        self.provenance.record(
            entity_type="splice",
            action=operation,
            data_hash=outcome.provenance_hash,
        )

        with self._stats_lock:
            self._stats.total_splices += 1
            if error_type is not None:
                self._stats.failed_splices += 1
                self._stats.errors_by_type[error_type] = (
                    self._stats.errors_by_type.get(error_type, 0) + 1
                )

        if self.config.enable_metrics:
            record_splice(operation, "success" if outcome.success else "failure")
            if outcome.error_code:
                record_splice_error(outcome.error_code)
            record_processing_duration("splice", time.time() - start_time)
        return outcome

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def is_subsequence(
        self,
        haystack: Any,
        needle: Any,
        require_order: bool = False,
    ) -> MatchOutcome:
        """Test whether ``needle`` occurs in ``haystack`` (see ``is_subsequence_of``)."""
        start_time = time.time()
        matched = is_subsequence_of(haystack, needle, require_order=require_order)

        h_positions = sorted_positions(haystack)
        n_positions = sorted_positions(needle)
        outcome = MatchOutcome(
            matched=matched,
            require_order=require_order,
            haystack_length=_highest(h_positions),
            needle_length=_highest(n_positions),
            processing_time_ms=round((time.time() - start_time) * 1000.0, 3),
        )
        outcome.provenance_hash = _sha256_of({
            "haystack": _fingerprint(haystack),
            "needle": _fingerprint(needle),
            "require_order": require_order,
            "matched": matched,
        })
        self.provenance.record(
            entity_type="match",
            action="match",
            data_hash=outcome.provenance_hash,
        )

        with self._stats_lock:
            self._stats.total_matches += 1
            if matched:
                self._stats.positive_matches += 1

        if self.config.enable_metrics:
            record_match(matched)
            record_processing_duration("match", time.time() - start_time)
        return outcome

    # ------------------------------------------------------------------
    # Statistics and health
    # ------------------------------------------------------------------

    def get_statistics(self) -> SparseSequenceStatistics:
        """Get a snapshot of the running statistics."""
        with self._stats_lock:
            return self._stats.model_copy(deep=True)

    def health_check(self) -> Dict[str, Any]:
        """Perform a health check on the service.

        Returns:
            Health status dict.
        """
        from gapseq.sparse_sequence import __version__

        stats = self.get_statistics()
        return {
            "status": "healthy",
            "service": "sparse-sequence",
            "version": __version__,
            "validations": stats.total_validations,
            "splices": stats.total_splices,
            "failed_splices": stats.failed_splices,
            "matches": stats.total_matches,
            "provenance_entries": self.provenance.entry_count,
            "provenance_retained": len(self.provenance.entries),
            "prometheus_available": PROMETHEUS_AVAILABLE,
        }

    def get_provenance(self) -> _ProvenanceTracker:
        """Get the provenance tracker used by this service."""
        return self.provenance

    def _update_avg_length(self, length: int) -> None:
        """Update running average length of valid sequences.

        Caller holds ``_stats_lock``.
        """
        total = self._stats.valid_sequences
        if total <= 1:
            self._stats.avg_sequence_length = float(length)
            return
        prev_avg = self._stats.avg_sequence_length
        self._stats.avg_sequence_length = (
            (prev_avg * (total - 1) + length) / total
        )


def _highest(positions: Optional[List[int]]) -> Optional[int]:
    if positions is None:
        return None
    return positions[-1] if positions else 0


# ===================================================================
# Thread-safe singleton access
# ===================================================================


def get_service() -> SparseSequenceService:
    """Get or create the singleton SparseSequenceService instance.

    Returns:
        The singleton SparseSequenceService.
    """
    global _singleton_instance
    if _singleton_instance is None:
        with _singleton_lock:
            if _singleton_instance is None:
                _singleton_instance = SparseSequenceService()
    return _singleton_instance


def reset_service() -> None:
    """Discard the singleton service. Intended for tests."""
    global _singleton_instance
    with _singleton_lock:
        _singleton_instance = None


__all__ = [
    "SparseSequenceService",
    "get_service",
    "reset_service",
]
