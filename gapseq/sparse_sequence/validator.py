# -*- coding: utf-8 -*-
"""
Sequence Validator - gapseq

Classifies keyed collections as bounded-gap sequences and computes their
logical length. A bounded-gap sequence is a mapping keyed by integers
``>= 1`` in which absent positions ("holes") are allowed, as long as:

    - the longest run of consecutive holes is at most ``max_nil_gap``
    - holes / length is at most ``max_nil_ratio``

``length`` is the highest populated position. Holes before the first
populated position belong to ``1..length`` and count towards both limits.
Positions after ``length`` do not exist. Both comparisons are inclusive.

The validator never raises: malformed input (non-mappings, string or
float keys, keys below 1, bools) is reported as invalid.

Example:
    >>> from gapseq.sparse_sequence.validator import sequence_length
    >>> sequence_length({2: "b", 3: "c", 4: "d"})
    4
    >>> sequence_length({1: "a", 5: "e"}, max_nil_gap=2) is None
    True
"""

from __future__ import annotations

import logging
import numbers
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

from gapseq.sparse_sequence.config import get_config
from gapseq.sparse_sequence.models import HoleRun, SequenceProfile

logger = logging.getLogger(__name__)

__all__ = [
    "has_sequence_keys",
    "is_valid_sequence",
    "sequence_length",
    "profile_sequence",
    "hole_runs",
    "values_equal",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_sequence_key(key: Any) -> bool:
    """Return True if ``key`` is an integer position (>= 1, not a bool)."""
    if isinstance(key, bool) or not isinstance(key, numbers.Integral):
        return False
    return key >= 1


def sorted_positions(collection: Any) -> Optional[List[int]]:
    """Return the sorted integer keys of ``collection``.

    Returns:
        Sorted list of positions, or None when ``collection`` is not a
        mapping or holds any key that is not an integer >= 1.
    """
    if not isinstance(collection, Mapping):
        return None
    positions = []
    for key in collection:
        if not _is_sequence_key(key):
            return None
        positions.append(int(key))
    positions.sort()
    return positions


def measure_positions(positions: List[int]) -> Tuple[int, int, List[Tuple[int, int]]]:
    """Compute length, hole count and hole runs from sorted positions.

    Args:
        positions: Sorted, distinct positions (all >= 1).

    Returns:
        Tuple of (length, hole_count, runs) where runs is a list of
        ``(start, size)`` pairs in ascending order.
    """
    if not positions:
        return 0, 0, []
    runs: List[Tuple[int, int]] = []
    previous = 0
    for pos in positions:
        gap = pos - previous - 1
        if gap > 0:
            runs.append((previous + 1, gap))
        previous = pos
    length = positions[-1]
    return length, length - len(positions), runs


def resolve_limits(
    max_nil_gap: Optional[int],
    max_nil_ratio: Optional[float],
) -> Tuple[int, float]:
    """Fill unset limits from the active configuration."""
    if max_nil_gap is None or max_nil_ratio is None:
        cfg = get_config()
        if max_nil_gap is None:
            max_nil_gap = cfg.max_nil_gap
        if max_nil_ratio is None:
            max_nil_ratio = cfg.max_nil_ratio
    return max_nil_gap, max_nil_ratio


def within_limits(
    length: int,
    hole_count: int,
    max_run: int,
    max_nil_gap: int,
    max_nil_ratio: float,
) -> bool:
    if length == 0:
        return True
    return max_run <= max_nil_gap and hole_count / length <= max_nil_ratio


def values_equal(a: Any, b: Any) -> bool:
    """Value equality used when comparing sequence elements.

    Identical objects always match. Comparisons that raise, or whose
    result has no truth value, count as "not equal".
    """
    if a is b:
        return True
    try:
        return bool(a == b)
    except Exception:
        return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def has_sequence_keys(collection: Any) -> bool:
    """Return True if ``collection`` is a mapping keyed only by integers >= 1.

    This is the key-shape half of the validity check; hole limits are not
    applied. An empty mapping qualifies.
    """
    return sorted_positions(collection) is not None


def sequence_length(
    collection: Any,
    max_nil_gap: Optional[int] = None,
    max_nil_ratio: Optional[float] = None,
) -> Optional[int]:
    """Return the logical length of a bounded-gap sequence.

    Args:
        collection: Candidate sequence (any value).
        max_nil_gap: Inclusive limit on the longest hole run
            (configured default when None, normally 10).
        max_nil_ratio: Inclusive limit on holes / length
            (configured default when None, normally 0.5).

    Returns:
        The highest populated position (0 for an empty mapping), or None
        when ``collection`` is not a valid bounded-gap sequence.
    """
    positions = sorted_positions(collection)
    if positions is None:
        logger.debug("sequence_length: rejected shape of %s", type(collection).__name__)
        return None
    max_nil_gap, max_nil_ratio = resolve_limits(max_nil_gap, max_nil_ratio)
    length, hole_count, runs = measure_positions(positions)
    max_run = max((size for _, size in runs), default=0)
    if not within_limits(length, hole_count, max_run, max_nil_gap, max_nil_ratio):
        logger.debug(
            "sequence_length: limits exceeded (length=%d, holes=%d, max_run=%d, "
            "max_nil_gap=%s, max_nil_ratio=%s)",
            length, hole_count, max_run, max_nil_gap, max_nil_ratio,
        )
        return None
    return length


def is_valid_sequence(
    collection: Any,
    max_nil_gap: Optional[int] = None,
    max_nil_ratio: Optional[float] = None,
) -> bool:
    """Return True if ``collection`` is a valid bounded-gap sequence.

    See :func:`sequence_length` for the arguments.
    """
    return sequence_length(collection, max_nil_gap, max_nil_ratio) is not None


def hole_runs(collection: Any) -> List[Tuple[int, int]]:
    """Return the ``(start, size)`` hole runs of a key-shape-valid mapping.

    Hole limits are not applied. Returns an empty list for anything that
    fails the key-shape check.
    """
    positions = sorted_positions(collection)
    if positions is None:
        return []
    return measure_positions(positions)[2]


def profile_sequence(
    collection: Any,
    max_nil_gap: Optional[int] = None,
    max_nil_ratio: Optional[float] = None,
) -> SequenceProfile:
    """Compute every derived attribute of a candidate sequence.

    Unlike :func:`sequence_length` this reports why a collection was
    rejected, which is what error reporting needs when describing an
    invalid table row.

    Args:
        collection: Candidate sequence (any value).
        max_nil_gap: Inclusive limit on the longest hole run.
        max_nil_ratio: Inclusive limit on holes / length.

    Returns:
        SequenceProfile; ``shape_ok`` is False for non-mappings and
        mappings with keys that are not integers >= 1.
    """
    max_nil_gap, max_nil_ratio = resolve_limits(max_nil_gap, max_nil_ratio)
    positions = sorted_positions(collection)
    if positions is None:
        if isinstance(collection, Mapping):
            reason = "keys must all be integers >= 1"
        else:
            reason = f"expected a mapping, got {type(collection).__name__}"
        return SequenceProfile(
            max_nil_gap=max_nil_gap,
            max_nil_ratio=max_nil_ratio,
            violations=[reason],
        )

    length, hole_count, runs = measure_positions(positions)
    max_run = max((size for _, size in runs), default=0)
    ratio = hole_count / length if length else 0.0

    violations = []
    # The empty sequence is valid under any limits
    if length and max_run > max_nil_gap:
        violations.append(
            f"hole run of {max_run} exceeds max_nil_gap={max_nil_gap}"
        )
    if length and ratio > max_nil_ratio:
        violations.append(
            f"hole ratio {ratio:.4f} exceeds max_nil_ratio={max_nil_ratio}"
        )

    return SequenceProfile(
        shape_ok=True,
        is_valid=not violations,
        length=length,
        present_count=len(positions),
        hole_count=hole_count,
        max_hole_run=max_run,
        hole_ratio=ratio,
        hole_runs=[HoleRun(start=start, size=size) for start, size in runs],
        max_nil_gap=max_nil_gap,
        max_nil_ratio=max_nil_ratio,
        violations=violations,
    )
