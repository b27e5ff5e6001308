"""
gapseq - bounded-gap sequences for sparse table rows.

Subpackages:
    - sparse_sequence: validation, splicing, matching and ordering
"""

from gapseq.sparse_sequence import __version__, describe, get_version

__all__ = ["__version__", "describe", "get_version"]
