"""Error and warning taxonomy.

Only ``FatalInputError`` aborts planning. Everything else is a warning
category: resolution problems are reported and the plan continues.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional, Type


class FatalInputError(Exception):
    """The package list is structurally invalid (missing columns/fields)."""

    def __init__(self, message: str, *, source: Optional[str] = None):
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        base = super().__str__()
        if self.source:
            return f"{base} (input: {self.source})"
        return base


class RepositoryDiscoveryError(RuntimeError):
    """Alternate registry discovery did not yield the four repository URLs."""


class DepdockWarning(UserWarning):
    """Base class for non-fatal conditions surfaced to the user."""


class ConfigWarning(DepdockWarning):
    """Unknown or unsupported platform; instructions may not work."""


class ResolutionSoftFailure(DepdockWarning):
    """System dependency lookup failed for a package; continuing without it."""


class ReferenceMissing(DepdockWarning):
    """Source-control reference could not be fully determined."""


def emit_warning(
    logger: logging.Logger,
    category: Type[DepdockWarning],
    message: str,
    *args: Any,
) -> None:
    """Log ``message`` at WARNING and raise a process-level warning of ``category``."""
    text = message % args if args else message
    logger.warning(text)
    warnings.warn(text, category, stacklevel=3)
