# -*- coding: utf-8 -*-
"""
Subsequence Matcher - gapseq

Tests whether every element of one sequence (the needle) occurs, by
value, in another (the haystack). Both sides only need the key shape of
a sequence (a mapping keyed by integers >= 1); hole limits do not apply.
A hole in the needle is matched by a hole in the haystack.

Without ordering, each needle element is looked up independently, so a
single haystack element may satisfy several needle elements. With
``require_order=True`` each match must sit strictly after the previous
one, which makes the test a genuine subsequence check.

Never raises: anything that is not a sequence yields False.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Set

from gapseq.sparse_sequence.validator import sorted_positions, values_equal

logger = logging.getLogger(__name__)

__all__ = ["is_subsequence_of"]


def _next_value_position(
    haystack: Mapping,
    positions: List[int],
    after: int,
    value: Any,
) -> Optional[int]:
    """First populated haystack position > ``after`` holding ``value``."""
    for pos in positions[bisect.bisect_right(positions, after):]:
        if values_equal(haystack[pos], value):
            return pos
    return None


def _next_hole_position(
    populated: Set[int],
    length: int,
    after: int,
) -> Optional[int]:
    """First haystack hole > ``after`` within ``1..length``."""
    pos = after + 1
    while pos <= length and pos in populated:
        pos += 1
    return pos if pos <= length else None


def _ordered_match(
    haystack: Mapping,
    h_positions: List[int],
    needle: Mapping,
    n_length: int,
) -> bool:
    h_length = h_positions[-1]
    populated = set(h_positions)
    last = 0
    for pos in range(1, n_length + 1):
        if pos in needle:
            found = _next_value_position(haystack, h_positions, last, needle[pos])
        else:
            found = _next_hole_position(populated, h_length, last)
        if found is None:
            return False
        last = found
    return True


def _unordered_match(
    haystack: Mapping,
    h_positions: List[int],
    needle: Mapping,
    n_positions: List[int],
) -> bool:
    # A needle hole needs at least one haystack hole
    needle_has_hole = len(n_positions) < n_positions[-1]
    haystack_has_hole = len(h_positions) < h_positions[-1]
    if needle_has_hole and not haystack_has_hole:
        return False

    hashed = set()
    unhashable = []
    for value in haystack.values():
        try:
            hashed.add(value)
        except Exception:
            unhashable.append(value)

    for value in needle.values():
        try:
            if value in hashed:
                continue
        except Exception:
            # Unhashable or uncomparable needle value, compare against every element
            if not any(values_equal(candidate, value) for candidate in haystack.values()):
                return False
            continue
        if not any(values_equal(candidate, value) for candidate in unhashable):
            return False
    return True


def is_subsequence_of(
    haystack: Any,
    needle: Any,
    require_order: bool = False,
) -> bool:
    """Return True if every element of ``needle`` appears in ``haystack``.

    Args:
        haystack: Sequence searched for values.
        needle: Sequence whose elements must all be found.
        require_order: When True, matches must occur at strictly
            increasing haystack positions.

    Returns:
        True on a match. False when either argument is not a mapping keyed
        by integers >= 1, when the needle is longer than the haystack, or
        when some needle element has no match. An empty needle always
        matches.
    """
    h_positions = sorted_positions(haystack)
    n_positions = sorted_positions(needle)
    if h_positions is None or n_positions is None:
        return False

    n_length = n_positions[-1] if n_positions else 0
    h_length = h_positions[-1] if h_positions else 0
    if n_length > h_length:
        return False
    if n_length == 0:
        return True

    if require_order:
        matched = _ordered_match(haystack, h_positions, needle, n_length)
    else:
        matched = _unordered_match(haystack, h_positions, needle, n_positions)
    logger.debug(
        "is_subsequence_of: needle_length=%d haystack_length=%d ordered=%s -> %s",
        n_length, h_length, require_order, matched,
    )
    return matched
