# -*- coding: utf-8 -*-
"""
Splice Engine - gapseq

Inserts or removes runs of holes in a bounded-gap sequence, in place.

    - ``count > 0`` shifts every populated position ``>= index`` up by
      ``count``, leaving ``index .. index+count-1`` as holes.
    - ``count < 0`` requires ``index .. index+|count|-1`` to be holes and
      shifts every later populated position down by ``|count|``.
    - ``count == 0`` is a no-op that always succeeds.

The target layout is planned and validated before the caller's mapping
is touched, so a failed splice leaves the input exactly as it was.

Splicing uses looser limits than plain validation (100 consecutive holes,
95% holes) so that rows can be reshaped through intermediate states.
Both can be overridden per call or via ``GS_SEQ_SPLICE_MAX_NIL_GAP`` and
``GS_SEQ_SPLICE_MAX_NIL_RATIO``.

Example:
    >>> from gapseq.sparse_sequence.splice_engine import splice
    >>> row = {1: "a", 2: "b", 3: "c"}
    >>> splice(row, 2, 2)
    (True, None)
    >>> row == {1: "a", 4: "b", 5: "c"}
    True
"""

from __future__ import annotations

import bisect
import logging
import numbers
import sys
from collections.abc import MutableMapping
from typing import Any, Dict, List, Optional, Tuple

from gapseq.exceptions import (
    ArgumentError,
    GapViolationError,
    IndexOverflowError,
    InsufficientHolesError,
    SequenceException,
    ShapeError,
    format_exception_chain,
)
from gapseq.sparse_sequence.config import get_config
from gapseq.sparse_sequence.validator import (
    measure_positions,
    sorted_positions,
    within_limits,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MAX_INDEX",
    "splice",
    "splice_or_raise",
]

#: Largest position a splice may produce (largest 64-bit signed integer).
MAX_INDEX = sys.maxsize


def _is_integer(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _max_run(runs: List[Tuple[int, int]]) -> int:
    return max((size for _, size in runs), default=0)


def _plan_insert(
    positions: List[int],
    length: int,
    index: int,
    count: int,
    max_nil_gap: int,
    max_nil_ratio: float,
) -> Dict[int, int]:
    """Plan an insertion of ``count`` holes at ``index``.

    Returns:
        Mapping of old position -> new position for every moved key.

    Raises:
        GapViolationError: Resulting layout breaks a hole limit.
        IndexOverflowError: A target position would exceed MAX_INDEX.
    """
    context = {
        "index": index,
        "count": count,
        "length": length,
        "max_nil_gap": max_nil_gap,
        "max_nil_ratio": max_nil_ratio,
    }
    if count > max_nil_gap:
        raise GapViolationError("insert count exceeds maximum allowed gap", context=context)
    if length + count > MAX_INDEX or index + count > MAX_INDEX:
        raise IndexOverflowError(
            "operation would exceed maximum integer value", context=context,
        )

    # Shifting keeps the order, so the scratch layout stays sorted
    shifted = [pos + count if pos >= index else pos for pos in positions]
    new_length, new_holes, new_runs = measure_positions(shifted)
    new_max_run = _max_run(new_runs)
    if new_max_run > max_nil_gap:
        context["resulting_max_hole_run"] = new_max_run
        raise GapViolationError("insert count exceeds maximum allowed gap", context=context)
    if not within_limits(new_length, new_holes, new_max_run, max_nil_gap, max_nil_ratio):
        context["resulting_hole_ratio"] = new_holes / new_length
        raise GapViolationError("insert would exceed maximum nil ratio", context=context)

    return {pos: pos + count for pos in positions if pos >= index}


def _plan_remove(
    positions: List[int],
    length: int,
    index: int,
    removed: int,
) -> Dict[int, int]:
    """Plan the removal of ``removed`` holes starting at ``index``.

    Positions after ``length`` are holes, so removing trailing holes is
    always possible. Removing holes can neither lengthen a run nor raise
    the hole ratio, so the result needs no re-validation.

    Returns:
        Mapping of old position -> new position for every moved key.

    Raises:
        IndexOverflowError: The removal range would exceed MAX_INDEX.
        InsufficientHolesError: A populated position lies in the range.
    """
    end = index + removed - 1
    context = {"index": index, "count": -removed, "length": length}
    if end > MAX_INDEX:
        raise IndexOverflowError(
            "operation would exceed maximum integer value", context=context,
        )

    first = bisect.bisect_left(positions, index)
    if first < len(positions) and positions[first] <= end:
        raise InsufficientHolesError(
            "not enough nils to remove",
            context=context,
            populated_index=positions[first],
        )

    return {pos: pos - removed for pos in positions[first:]}


def _commit(collection: MutableMapping, moves: Dict[int, int]) -> None:
    """Apply a planned layout to the caller's mapping in place."""
    if not moves:
        return
    values = {new: collection[old] for old, new in moves.items()}
    for old in moves:
        del collection[old]
    collection.update(values)


def splice_or_raise(
    collection: Any,
    index: Any,
    count: Any,
    max_nil_gap: Optional[int] = None,
    max_nil_ratio: Optional[float] = None,
) -> bool:
    """Insert (count > 0) or remove (count < 0) holes at ``index``, in place.

    Args:
        collection: Mutable mapping holding a bounded-gap sequence.
        index: 1-based position of the splice.
        count: Number of holes to insert (positive) or remove (negative).
        max_nil_gap: Hole run limit (configured splice default when None).
        max_nil_ratio: Hole ratio limit (configured splice default when None).

    Returns:
        True once the splice has been applied.

    Raises:
        ShapeError: Input is not a mutable mapping or not a valid sequence.
        ArgumentError: ``index`` or ``count`` is not an integer, or index < 1.
        IndexOverflowError: Target positions would exceed MAX_INDEX.
        GapViolationError: Insertion would break a hole limit.
        InsufficientHolesError: Removal range contains a populated position.
    """
    if not isinstance(collection, MutableMapping):
        type_name = type(collection).__name__
        raise ShapeError(
            f"expected a mutable mapping as sequence, got {type_name}",
            actual_type=type_name,
        )
    if not _is_integer(index):
        raise ArgumentError("expected integer index", argument="index", value=index)
    if index < 1:
        raise ArgumentError("index cannot be less than 1", argument="index", value=index)
    if not _is_integer(count):
        raise ArgumentError("expected integer count", argument="count", value=count)
    index, count = int(index), int(count)
    if count == 0:
        return True

    if max_nil_gap is None or max_nil_ratio is None:
        cfg = get_config()
        if max_nil_gap is None:
            max_nil_gap = cfg.splice_max_nil_gap
        if max_nil_ratio is None:
            max_nil_ratio = cfg.splice_max_nil_ratio

    positions = sorted_positions(collection)
    if positions is not None:
        length, hole_count, runs = measure_positions(positions)
        valid = within_limits(length, hole_count, _max_run(runs), max_nil_gap, max_nil_ratio)
    if positions is None or not valid:
        raise ShapeError(
            "not a valid sparse sequence",
            context={"max_nil_gap": max_nil_gap, "max_nil_ratio": max_nil_ratio},
        )

    if count > 0:
        moves = _plan_insert(positions, length, index, count, max_nil_gap, max_nil_ratio)
    else:
        moves = _plan_remove(positions, length, index, -count)

    logger.debug(
        "splice: index=%d count=%d length=%d moving %d entries",
        index, count, length, len(moves),
    )
    _commit(collection, moves)
    return True


def splice(
    collection: Any,
    index: Any,
    count: Any,
    max_nil_gap: Optional[int] = None,
    max_nil_ratio: Optional[float] = None,
) -> Tuple[Optional[bool], Optional[SequenceException]]:
    """Insert or remove holes at ``index`` and report failures as values.

    Same contract as :func:`splice_or_raise`, but failures are returned
    instead of raised.

    Returns:
        ``(True, None)`` on success, ``(None, error)`` on failure, where
        ``error`` is the SequenceException describing the cause. The input
        is unchanged whenever an error is returned.
    """
    try:
        splice_or_raise(collection, index, count, max_nil_gap, max_nil_ratio)
    except SequenceException as exc:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("splice rejected: %s", format_exception_chain(exc))
        return None, exc
    return True, None
