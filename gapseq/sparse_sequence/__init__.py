# -*- coding: utf-8 -*-
"""
gapseq Sparse Sequence Engine
=============================

Validation and manipulation of bounded-gap sequences: integer-keyed
mappings (positions from 1) that may contain absent positions ("holes"),
as long as no run of holes is too long and holes do not make up too
large a share of the sequence. Used to model table rows in which some
cells are missing. It supports:

- Validity checks and logical length under configurable hole limits
- Profiling of hole runs and hole ratio with human-readable violations
- In-place insertion and removal of hole runs (splicing)
- Ordered and unordered subsequence tests
- Element-wise ordering of sequences for sorting rows
- Conversion between dense rows and sequences
- Prometheus metrics and SHA-256 provenance through a service facade
- Thread-safe configuration with GS_SEQ_ env prefix

Key Components:
    - config: SparseSequenceConfig with GS_SEQ_ env prefix
    - validator: validity, length and profiling
    - splice_engine: insert and remove holes in place
    - subsequence_matcher: subsequence tests
    - comparators: sequence ordering
    - rows: dense row conversion
    - metrics: Prometheus metrics
    - setup: SparseSequenceService facade

Example:
    >>> from gapseq.sparse_sequence import splice, sequence_length
    >>> row = {1: "a", 2: "b", 3: "c"}
    >>> splice(row, 2, 2)
    (True, None)
    >>> sequence_length(row)
    5
"""

NAME = "sparse_sequence"
__version__ = "0.8.0"

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from gapseq.sparse_sequence.config import (
    MAX_NIL_GAP,
    MAX_NIL_RATIO,
    SPLICE_MAX_NIL_GAP,
    SPLICE_MAX_NIL_RATIO,
    PROVENANCE_MAX_ENTRIES,
    SparseSequenceConfig,
    get_config,
    set_config,
    reset_config,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from gapseq.sparse_sequence.models import (
    HoleRun,
    SequenceProfile,
    SpliceOutcome,
    MatchOutcome,
    SparseSequenceStatistics,
)

# ---------------------------------------------------------------------------
# Core operations
# ---------------------------------------------------------------------------
from gapseq.sparse_sequence.validator import (
    has_sequence_keys,
    is_valid_sequence,
    sequence_length,
    profile_sequence,
    hole_runs,
)
from gapseq.sparse_sequence.splice_engine import (
    MAX_INDEX,
    splice,
    splice_or_raise,
)
from gapseq.sparse_sequence.subsequence_matcher import is_subsequence_of
from gapseq.sparse_sequence.comparators import (
    compare_sequences,
    make_sequence_comparator,
    sequence_sort_key,
)
from gapseq.sparse_sequence.rows import from_row, to_row

# ---------------------------------------------------------------------------
# Metrics and service facade
# ---------------------------------------------------------------------------
from gapseq.sparse_sequence.metrics import PROMETHEUS_AVAILABLE
from gapseq.sparse_sequence.setup import (
    SparseSequenceService,
    get_service,
    reset_service,
)


def get_version() -> str:
    """Return the package version string."""
    return __version__


def describe() -> str:
    """Return ``"<name> version <version>"``."""
    return f"{NAME} version {__version__}"


__all__ = [
    # Identity
    "NAME",
    "__version__",
    "get_version",
    "describe",
    # Configuration
    "MAX_NIL_GAP",
    "MAX_NIL_RATIO",
    "SPLICE_MAX_NIL_GAP",
    "SPLICE_MAX_NIL_RATIO",
    "PROVENANCE_MAX_ENTRIES",
    "SparseSequenceConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Models
    "HoleRun",
    "SequenceProfile",
    "SpliceOutcome",
    "MatchOutcome",
    "SparseSequenceStatistics",
    # Core operations
    "has_sequence_keys",
    "is_valid_sequence",
    "sequence_length",
    "profile_sequence",
    "hole_runs",
    "MAX_INDEX",
    "splice",
    "splice_or_raise",
    "is_subsequence_of",
    "compare_sequences",
    "make_sequence_comparator",
    "sequence_sort_key",
    "from_row",
    "to_row",
    # Metrics and service
    "PROMETHEUS_AVAILABLE",
    "SparseSequenceService",
    "get_service",
    "reset_service",
]
