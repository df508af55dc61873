"""
Exception classes for the collapsing core.

This module provides:
- CollapseError, the base class carrying a details dict
- PreconditionError for caller contract violations (undersized output
  buffers, frequency/marker count mismatches, out-of-range column indices)

Degenerate numeric conditions (frequency exactly 0 or 1, no cases or no
controls, quadrature non-convergence) are handled where they occur and never
raise.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("rvcollapse")


class CollapseError(Exception):
    """Base exception for all collapsing core errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize collapse error.

        Parameters
        ----------
        message : str
            Error message
        details : dict, optional
            Additional error details
        """
        super().__init__(message)
        self.details = details or {}


class PreconditionError(CollapseError, ValueError):
    """Raised when a caller violates an operation's input contract."""

    def __init__(self, message: str, field: str, **details: Any):
        """Initialize precondition error."""
        super().__init__(message, {"field": field, **details})
        self.field = field

    def __reduce__(self):
        """Custom pickling so the error survives process boundaries."""
        return (_rebuild_precondition_error, (str(self), self.field, self.details))


def _rebuild_precondition_error(message: str, field: str, details: Dict[str, Any]):
    extra = {k: v for k, v in details.items() if k != "field"}
    return PreconditionError(message, field, **extra)


def require(condition: bool, message: str, field: str, **details: Any) -> None:
    """Raise PreconditionError with ``message`` unless ``condition`` holds.

    Parameters
    ----------
    condition : bool
        The precondition being checked.
    message : str
        Error message when the check fails.
    field : str
        Name of the offending argument.
    **details
        Extra context stored on the exception.
    """
    if not condition:
        logger.debug(f"Precondition failed on '{field}': {message}")
        raise PreconditionError(message, field, **details)
