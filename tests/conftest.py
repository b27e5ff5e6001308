# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import pytest

from gapseq.sparse_sequence.config import reset_config
from gapseq.sparse_sequence.setup import reset_service

_ENV_VARS = (
    "GS_SEQ_MAX_NIL_GAP",
    "GS_SEQ_MAX_NIL_RATIO",
    "GS_SEQ_SPLICE_MAX_NIL_GAP",
    "GS_SEQ_SPLICE_MAX_NIL_RATIO",
    "GS_SEQ_ENABLE_METRICS",
    "GS_SEQ_LOG_LEVEL",
    "GS_SEQ_PROVENANCE_MAX_ENTRIES",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Start every test from default configuration and a fresh service."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_service()
    yield
    reset_config()
    reset_service()


@pytest.fixture
def abc_row():
    """A dense three-element row."""
    return {1: "a", 2: "b", 3: "c"}


@pytest.fixture
def sparse_row():
    """A row with one hole run of size 2 at positions 2-3."""
    return {1: "a", 4: "d", 5: "e"}
