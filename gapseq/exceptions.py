"""gapseq Exception Hierarchy.

This module provides the exception hierarchy for gapseq with rich error
context for debugging, diagnostics, and caller feedback.

Exception Hierarchy:
    GapSeqException (base)
    └── SequenceException
        ├── ShapeError
        ├── ArgumentError
        ├── IndexOverflowError
        ├── GapViolationError
        └── InsufficientHolesError

All exceptions include rich context:
- error_code: Unique error identifier
- context: Dictionary with error-specific details
- timestamp: When the error occurred
- traceback: Stack at the point of construction

Sequence errors are expected, recoverable conditions. ``splice`` returns
them as values instead of raising; ``splice_or_raise`` raises them.

Example:
    >>> from gapseq.exceptions import ArgumentError
    >>> raise ArgumentError(
    ...     message="index cannot be less than 1",
    ...     context={"index": 0}
    ... )
"""

from typing import Any, Dict, Optional
from datetime import datetime
import json
import re
import traceback as tb


# ==============================================================================
# Base Exception
# ==============================================================================

class GapSeqException(Exception):
    """Base exception for all gapseq errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "GS_SEQ_SHAPE_ERROR")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
        traceback_str: Stack trace captured at construction
    """

    # Base error code prefix
    ERROR_PREFIX = "GS"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize gapseq exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()
        self.traceback_str = "".join(tb.format_stack()[:-1])

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class.

        Returns:
            Error code like "GS_SEQ_SHAPE_ERROR"
        """
        # CamelCase -> SCREAMING_SNAKE_CASE
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback_str,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        """String representation with error code and message."""
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Sequence Exceptions
# ==============================================================================

class SequenceException(GapSeqException):
    """Base exception for bounded-gap sequence errors."""
    ERROR_PREFIX = "GS_SEQ"


class ShapeError(SequenceException):
    """Input is not a usable bounded-gap sequence.

    Raised (or returned) when the collection is not a mapping, holds keys
    that are not integers >= 1, or violates the hole limits.

    Example:
        >>> raise ShapeError(
        ...     message="not a valid sparse sequence",
        ...     context={"max_nil_gap": 100, "max_nil_ratio": 0.95}
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        actual_type: Optional[str] = None,
    ):
        """Initialize shape error.

        Args:
            message: Error message
            context: Error context
            actual_type: Type name of the rejected input
        """
        context = context or {}
        if actual_type:
            context["actual_type"] = actual_type
        super().__init__(message, context=context)


class ArgumentError(SequenceException):
    """An index or count argument is unusable.

    Each cause carries its own message ("expected integer index",
    "index cannot be less than 1", "expected integer count").
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        argument: Optional[str] = None,
        value: Any = None,
    ):
        """Initialize argument error.

        Args:
            message: Error message
            context: Error context
            argument: Name of the offending argument
            value: Offending value (stored as its repr)
        """
        context = context or {}
        if argument:
            context["argument"] = argument
            context["value"] = repr(value)
        super().__init__(message, context=context)


class IndexOverflowError(SequenceException):
    """Index arithmetic would leave the representable integer range."""
    pass


class GapViolationError(SequenceException):
    """Insertion would create an overlong hole run or too many holes."""
    pass


class InsufficientHolesError(SequenceException):
    """Removal requested more consecutive holes than are present.

    Example:
        >>> raise InsufficientHolesError(
        ...     message="not enough nils to remove",
        ...     populated_index=4,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        populated_index: Optional[int] = None,
    ):
        """Initialize insufficient holes error.

        Args:
            message: Error message
            context: Error context
            populated_index: First populated position inside the removal range
        """
        context = context or {}
        if populated_index is not None:
            context["populated_index"] = populated_index
        super().__init__(message, context=context)


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: BaseException) -> str:
    """Render ``exc`` and its explicit causes, one line each.

    Each line is ``[CODE] - message (key=value, ...)`` for gapseq errors,
    with context keys sorted, or ``Type: message`` for anything else.
    Causes are indented under the exception they caused. A cause chain
    that loops back on itself stops at the first repeat.

    Example:
        >>> err = ArgumentError("expected integer count", argument="count", value="x")
        >>> print(format_exception_chain(err))
        [GS_SEQ_ARGUMENT_ERROR] - expected integer count (argument=count, value='x')
    """
    lines = []
    seen = set()
    current: Optional[BaseException] = exc
    depth = 0
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, GapSeqException):
            line = str(current)
            if current.context:
                details = ", ".join(
                    f"{key}={current.context[key]}"
                    for key in sorted(current.context, key=str)
                )
                line = f"{line} ({details})"
        else:
            line = f"{type(current).__name__}: {current}"
        prefix = "  " * depth + ("caused by " if depth else "")
        lines.append(prefix + line)
        current = current.__cause__
        depth += 1
    return "\n".join(lines)


__all__ = [
    "GapSeqException",
    "SequenceException",
    "ShapeError",
    "ArgumentError",
    "IndexOverflowError",
    "GapViolationError",
    "InsufficientHolesError",
    "format_exception_chain",
]
