"""Exception types raised by the rename and resize engines.

Every error is scoped to a single batch item. The batch helpers in
:mod:`src.renovo.batch` turn them into ``error`` result records.
"""

from __future__ import annotations

from typing import Any, Optional


class RenovoError(Exception):
    """Base class for item-scoped failures.

    Parameters
    ----------
    message
        Human-readable reason, used verbatim as the result's error text.
    result
        Partially populated result record, if the engine got far enough to
        build one (e.g. original dimensions are known).
    """

    def __init__(self, message: str, result: Optional[Any] = None) -> None:
        super().__init__(message)
        self.result = result


class ValidationError(RenovoError):
    """Invalid input; raised before any side effect happens."""


class ItemIOError(RenovoError):
    """Decode, directory creation, encode/save or move failure."""
