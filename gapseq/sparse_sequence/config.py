# -*- coding: utf-8 -*-
"""
Sparse Sequence Configuration - gapseq

Centralized configuration for the bounded-gap sequence engine covering:
- Default validity limits (maximum hole run, maximum hole ratio)
- Splice limits used when re-validating an insert or remove
- Size of the in-memory provenance trail
- Metrics toggle and logging level

All settings can be overridden via environment variables with the
``GS_SEQ_`` prefix (e.g. ``GS_SEQ_MAX_NIL_GAP``).

Example:
    >>> from gapseq.sparse_sequence.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.max_nil_gap, cfg.max_nil_ratio)
    10 0.5
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "GS_SEQ_"

# ---------------------------------------------------------------------------
# Module defaults
# ---------------------------------------------------------------------------

#: Maximum number of consecutive holes allowed by the validator.
MAX_NIL_GAP = 10
#: Maximum ratio of holes to sequence length allowed by the validator.
MAX_NIL_RATIO = 0.5
#: Maximum hole run tolerated while splicing.
SPLICE_MAX_NIL_GAP = 100
#: Maximum hole ratio tolerated while splicing.
SPLICE_MAX_NIL_RATIO = 0.95
#: Provenance entries kept in memory by the service facade.
PROVENANCE_MAX_ENTRIES = 10000


# ---------------------------------------------------------------------------
# SparseSequenceConfig
# ---------------------------------------------------------------------------


@dataclass
class SparseSequenceConfig:
    """Complete configuration for the bounded-gap sequence engine.

    Attributes:
        max_nil_gap: Inclusive upper bound on the longest hole run.
        max_nil_ratio: Inclusive upper bound on holes / length.
        splice_max_nil_gap: Hole run limit applied by ``splice``.
        splice_max_nil_ratio: Hole ratio limit applied by ``splice``.
        provenance_max_entries: Most recent provenance entries the service
            facade keeps in memory; older entries are dropped.
        enable_metrics: Whether the service facade records Prometheus metrics.
        log_level: Logging level suggested to host applications.
    """

    # -- Validity limits -----------------------------------------------------
    max_nil_gap: int = MAX_NIL_GAP
    max_nil_ratio: float = MAX_NIL_RATIO

    # -- Splice limits -------------------------------------------------------
    splice_max_nil_gap: int = SPLICE_MAX_NIL_GAP
    splice_max_nil_ratio: float = SPLICE_MAX_NIL_RATIO

    # -- Provenance ----------------------------------------------------------
    provenance_max_entries: int = PROVENANCE_MAX_ENTRIES

    # -- Observability -------------------------------------------------------
    enable_metrics: bool = True
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> SparseSequenceConfig:
        """Build a SparseSequenceConfig from environment variables.

        Every field can be overridden via ``GS_SEQ_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Negative limits and ratios outside ``[0, 1]`` are rejected with a
        warning and the default is kept.

        Returns:
            Populated SparseSequenceConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _non_negative(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                parsed = int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default
            if parsed < 0:
                logger.warning(
                    "Negative value for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default
            return parsed

        def _ratio(name: str, default: float) -> float:
            val = _env(name)
            if val is None:
                return default
            try:
                parsed = float(val)
            except ValueError:
                logger.warning(
                    "Invalid float for %s%s=%s, using default %f",
                    prefix, name, val, default,
                )
                return default
            if not 0.0 <= parsed <= 1.0:
                logger.warning(
                    "Ratio out of [0, 1] for %s%s=%s, using default %f",
                    prefix, name, val, default,
                )
                return default
            return parsed

        config = cls(
            max_nil_gap=_non_negative("MAX_NIL_GAP", cls.max_nil_gap),
            max_nil_ratio=_ratio("MAX_NIL_RATIO", cls.max_nil_ratio),
            splice_max_nil_gap=_non_negative(
                "SPLICE_MAX_NIL_GAP", cls.splice_max_nil_gap,
            ),
            splice_max_nil_ratio=_ratio(
                "SPLICE_MAX_NIL_RATIO", cls.splice_max_nil_ratio,
            ),
            provenance_max_entries=_non_negative(
                "PROVENANCE_MAX_ENTRIES", cls.provenance_max_entries,
            ),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
            log_level=_env("LOG_LEVEL", cls.log_level),
        )

        logger.info(
            "SparseSequenceConfig loaded: max_nil_gap=%d, max_nil_ratio=%.2f, "
            "splice_max_nil_gap=%d, splice_max_nil_ratio=%.2f, metrics=%s",
            config.max_nil_gap,
            config.max_nil_ratio,
            config.splice_max_nil_gap,
            config.splice_max_nil_ratio,
            config.enable_metrics,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[SparseSequenceConfig] = None
_config_lock = threading.Lock()


def get_config() -> SparseSequenceConfig:
    """Return the singleton SparseSequenceConfig, creating from env if needed.

    Uses double-checked locking for thread safety with minimal
    contention on the hot path.

    Returns:
        SparseSequenceConfig singleton instance.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = SparseSequenceConfig.from_env()
    return _config_instance


def set_config(config: SparseSequenceConfig) -> None:
    """Replace the singleton SparseSequenceConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("SparseSequenceConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "MAX_NIL_GAP",
    "MAX_NIL_RATIO",
    "SPLICE_MAX_NIL_GAP",
    "SPLICE_MAX_NIL_RATIO",
    "PROVENANCE_MAX_ENTRIES",
    "SparseSequenceConfig",
    "get_config",
    "set_config",
    "reset_config",
]
