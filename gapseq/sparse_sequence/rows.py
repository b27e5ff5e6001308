# -*- coding: utf-8 -*-
"""
Row Conversion - gapseq

Bridges dense table rows (0-based lists where missing cells are ``None``)
and 1-based bounded-gap sequences.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from gapseq.exceptions import ShapeError
from gapseq.sparse_sequence.validator import sequence_length

__all__ = ["from_row", "to_row"]


def _is_missing(value: Any) -> bool:
    """Return True for None."""
    return value is None


def _is_blank(value: Any) -> bool:
    """Return True for None, empty string, or whitespace-only string."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def from_row(values: Iterable[Any], blank_as_missing: bool = False) -> Dict[int, Any]:
    """Convert a dense row into a 1-based sequence.

    Args:
        values: Row cells in column order.
        blank_as_missing: Also treat empty and whitespace-only strings as
            missing cells.

    Returns:
        Dict mapping column position (from 1) to cell value, without
        entries for missing cells. The result is not validated.
    """
    missing: Callable[[Any], bool] = _is_blank if blank_as_missing else _is_missing
    return {
        pos: value
        for pos, value in enumerate(values, start=1)
        if not missing(value)
    }


def to_row(
    collection: Any,
    fill: Any = None,
    max_nil_gap: Optional[int] = None,
    max_nil_ratio: Optional[float] = None,
) -> List[Any]:
    """Expand a bounded-gap sequence into a dense row.

    Args:
        collection: Sequence to expand.
        fill: Value written for holes.
        max_nil_gap: Hole run limit (configured default when None).
        max_nil_ratio: Hole ratio limit (configured default when None).

    Returns:
        List of ``length`` cells; position ``i`` lands at list index ``i - 1``.

    Raises:
        ShapeError: ``collection`` is not a valid sequence under the limits.
    """
    length = sequence_length(collection, max_nil_gap, max_nil_ratio)
    if length is None:
        raise ShapeError(
            "not a valid sparse sequence",
            context={"max_nil_gap": max_nil_gap, "max_nil_ratio": max_nil_ratio},
            actual_type=type(collection).__name__,
        )
    return [collection[pos] if pos in collection else fill for pos in range(1, length + 1)]
