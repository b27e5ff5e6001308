# -*- coding: utf-8 -*-
"""
Sequence Comparators - gapseq

Element-wise ordering of bounded-gap sequences, for sorting table rows.

Positions are compared from 1 upwards. A hole sorts before any value,
equal values move on to the next position, and the first differing pair
of values decides through a "less than" predicate. When every compared
position is equal, the shorter sequence sorts first.

Example:
    >>> from gapseq.sparse_sequence.comparators import sequence_sort_key
    >>> rows = [{1: "b"}, {1: "a", 2: "z"}, {2: "c"}]
    >>> sorted(rows, key=sequence_sort_key())
    [{2: 'c'}, {1: 'a', 2: 'z'}, {1: 'b'}]
"""

from __future__ import annotations

import functools
import operator
from typing import Any, Callable, Optional

from gapseq.exceptions import ShapeError
from gapseq.sparse_sequence.validator import sequence_length, values_equal

__all__ = [
    "compare_sequences",
    "make_sequence_comparator",
    "sequence_sort_key",
]

LessThan = Callable[[Any, Any], bool]


def _checked_length(collection: Any, argument: str) -> int:
    length = sequence_length(collection)
    if length is None:
        raise ShapeError(
            "not a valid sparse sequence",
            context={"argument": argument},
            actual_type=type(collection).__name__,
        )
    return length


def compare_sequences(
    a: Any,
    b: Any,
    value_less: Optional[LessThan] = None,
) -> int:
    """Three-way comparison of two bounded-gap sequences.

    Args:
        a: First sequence.
        b: Second sequence.
        value_less: Predicate ``(v1, v2) -> bool`` returning True when
            ``v1`` sorts before ``v2``. Defaults to ``operator.lt``.

    Returns:
        -1 if ``a`` sorts first, 1 if ``b`` sorts first, 0 if neither.

    Raises:
        ShapeError: Either argument is not a valid sequence under the
            configured default limits.
    """
    less = value_less or operator.lt
    len_a = _checked_length(a, "a")
    len_b = _checked_length(b, "b")

    for pos in range(1, min(len_a, len_b) + 1):
        in_a = pos in a
        in_b = pos in b
        if not in_a and not in_b:
            continue
        if not in_a:
            return -1
        if not in_b:
            return 1
        v1, v2 = a[pos], b[pos]
        if values_equal(v1, v2):
            continue
        if less(v1, v2):
            return -1
        if less(v2, v1):
            return 1

    if len_a == len_b:
        return 0
    return -1 if len_a < len_b else 1


def make_sequence_comparator(
    value_less: Optional[LessThan] = None,
) -> Callable[[Any, Any], int]:
    """Bind ``value_less`` into a two-argument comparison function."""
    return functools.partial(compare_sequences, value_less=value_less)


def sequence_sort_key(value_less: Optional[LessThan] = None) -> Callable[[Any], Any]:
    """Return a ``key=`` callable for :func:`sorted` over sequences."""
    return functools.cmp_to_key(make_sequence_comparator(value_less))
