"""Exception types raised by keyguard.

The scanner itself never raises; these come from the guard, config and I/O
layers.  ``DuplicateKeyError`` and ``InvalidJsonError`` subclass
``ValueError`` so callers already catching ``ValueError`` from
``safe_json_loads()`` keep working.
"""

from __future__ import annotations

import json
from typing import Optional

from .scanner import DuplicateKey


class KeyguardError(Exception):
    """Base class for keyguard errors."""


class DuplicateKeyError(KeyguardError, ValueError):
    """Raised when text about to be saved repeats a key in one object."""

    def __init__(self, duplicate: DuplicateKey, source: Optional[str] = None):
        self.duplicate = duplicate
        self.source = source
        msg = (
            f"Duplicate JSON key {duplicate.key!r} "
            f"at line {duplicate.line}, column {duplicate.column}"
        )
        if source:
            msg = f"{source}: {msg}"
        super().__init__(msg)


class InvalidJsonError(KeyguardError, ValueError):
    """Raised in strict mode when the text is not well-formed JSON."""

    def __init__(self, cause: ValueError, source: Optional[str] = None):
        self.cause = cause
        self.source = source
        if isinstance(cause, json.JSONDecodeError):
            detail = f"{cause.msg} (line {cause.lineno}, column {cause.colno})"
        else:
            detail = str(cause)
        msg = f"Invalid JSON: {detail}"
        if source:
            msg = f"{source}: {msg}"
        super().__init__(msg)


class DecodedDuplicateKeyError(KeyguardError, ValueError):
    """Raised by the strict decoders when a mapping repeats a key.

    ``line`` and ``column`` are 1-based and point at the repeated key when
    the decoder knows where it is (YAML); the JSON decoder only knows the
    key itself.
    """

    def __init__(
        self,
        key: object,
        *,
        kind: str = "JSON",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.key = key
        self.kind = kind
        self.line = line
        self.column = column
        msg = f"Duplicate {kind} key: {key!r}"
        if line is not None:
            msg += f" (line {line}, column {column})"
        super().__init__(msg)


class KeyguardConfigError(KeyguardError):
    """Raised when the keyguard config file is invalid.

    ``line`` and ``column`` are set when the problem has a position in the
    file.
    """

    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.line = line
        self.column = column
        super().__init__(message)


class UnsafeWriteError(KeyguardError):
    """Raised when a file write would be unsafe."""
