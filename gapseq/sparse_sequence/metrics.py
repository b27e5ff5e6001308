# -*- coding: utf-8 -*-
"""
Prometheus Metrics - gapseq sparse sequences

Prometheus metrics for sparse sequence operations with graceful fallback
when prometheus_client is not installed.

Metrics:
    1. gs_seq_validations_total (Counter, labels: result)
    2. gs_seq_splices_total (Counter, labels: operation, outcome)
    3. gs_seq_splice_errors_total (Counter, labels: error_type)
    4. gs_seq_matches_total (Counter, labels: result)
    5. gs_seq_sequence_length (Histogram)
    6. gs_seq_processing_duration_seconds (Histogram, labels: operation)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Graceful prometheus_client import
# ---------------------------------------------------------------------------

try:
    from prometheus_client import Counter, Histogram
    PROMETHEUS_AVAILABLE = True
except ImportError:
    PROMETHEUS_AVAILABLE = False
    logger.info(
        "prometheus_client not installed; sparse sequence metrics disabled"
    )


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

if PROMETHEUS_AVAILABLE:
    # 1. Validations by result (valid, invalid)
    seq_validations_total = Counter(
        "gs_seq_validations_total",
        "Total sparse sequence validations",
        labelnames=["result"],
    )

    # 2. Splices by direction and outcome
    seq_splices_total = Counter(
        "gs_seq_splices_total",
        "Total sparse sequence splices",
        labelnames=["operation", "outcome"],
    )

    # 3. Rejected splices by error code
    seq_splice_errors_total = Counter(
        "gs_seq_splice_errors_total",
        "Total rejected sparse sequence splices",
        labelnames=["error_type"],
    )

    # 4. Subsequence tests by result
    seq_matches_total = Counter(
        "gs_seq_matches_total",
        "Total subsequence tests",
        labelnames=["result"],
    )

    # 5. Length of validated sequences
    seq_sequence_length = Histogram(
        "gs_seq_sequence_length",
        "Logical length of validated sparse sequences",
        buckets=(
            1, 2, 5, 10, 20, 50,
            100, 250, 500, 1000, 5000, 10000,
        ),
    )

    # 6. Processing duration by operation
    seq_processing_duration_seconds = Histogram(
        "gs_seq_processing_duration_seconds",
        "Sparse sequence processing duration in seconds",
        labelnames=["operation"],
        buckets=(
            0.0001, 0.0005, 0.001, 0.005, 0.01,
            0.05, 0.1, 0.5, 1.0, 5.0,
        ),
    )

else:
    # No-op placeholders
    seq_validations_total = None  # type: ignore[assignment]
    seq_splices_total = None  # type: ignore[assignment]
    seq_splice_errors_total = None  # type: ignore[assignment]
    seq_matches_total = None  # type: ignore[assignment]
    seq_sequence_length = None  # type: ignore[assignment]
    seq_processing_duration_seconds = None  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Helper functions (safe to call even without prometheus_client)
# ---------------------------------------------------------------------------


def record_validation(valid: bool, length: int = 0) -> None:
    """Record a validation event.

    Args:
        valid: Whether the candidate was a valid sequence.
        length: Logical length, observed only for valid sequences.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    seq_validations_total.labels(
        result="valid" if valid else "invalid",
    ).inc()
    if valid:
        seq_sequence_length.observe(length)


def record_splice(operation: str, outcome: str) -> None:
    """Record a splice event.

    Args:
        operation: Splice direction (insert, remove, noop).
        outcome: Result (success, failure).
    """
    if not PROMETHEUS_AVAILABLE:
        return
    seq_splices_total.labels(
        operation=operation,
        outcome=outcome,
    ).inc()


def record_splice_error(error_type: str) -> None:
    """Record a rejected splice.

    Args:
        error_type: Error code of the raised exception.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    seq_splice_errors_total.labels(
        error_type=error_type,
    ).inc()


def record_match(matched: bool) -> None:
    """Record a subsequence test."""
    if not PROMETHEUS_AVAILABLE:
        return
    seq_matches_total.labels(
        result="match" if matched else "no_match",
    ).inc()


def record_processing_duration(operation: str, duration: float) -> None:
    """Record processing duration for an operation.

    Args:
        operation: Operation type (validate, profile, splice, match).
        duration: Duration in seconds.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    seq_processing_duration_seconds.labels(
        operation=operation,
    ).observe(duration)


__all__ = [
    "PROMETHEUS_AVAILABLE",
    # Metric objects
    "seq_validations_total",
    "seq_splices_total",
    "seq_splice_errors_total",
    "seq_matches_total",
    "seq_sequence_length",
    "seq_processing_duration_seconds",
    # Helper functions
    "record_validation",
    "record_splice",
    "record_splice_error",
    "record_match",
    "record_processing_duration",
]
