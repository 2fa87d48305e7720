"""Save-time guard for edited JSON config text.

This is the layer an editor or form handler calls before persisting a
value: it runs the duplicate-key scanner, blocks the save when a key is
repeated inside one object, and otherwise writes the text atomically.
Strict mode additionally requires the text to decode as JSON.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .errors import DecodedDuplicateKeyError, DuplicateKeyError, InvalidJsonError, KeyguardError
from .scanner import DuplicateKey, find_duplicate_key
from .utils.safe_io import atomic_write_text
from .utils.safe_json import safe_json_loads

logger = logging.getLogger("keyguard.guard")

EXIT_OK = 0
EXIT_DUPLICATE = 1
EXIT_INVALID = 2


@dataclass
class CheckResult:
    """Outcome of checking one piece of config text."""
    source: str
    duplicate: Optional[DuplicateKey] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    invalid: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def exit_code(self) -> int:
        if self.invalid:
            return EXIT_INVALID
        if self.duplicate is not None:
            return EXIT_DUPLICATE
        return EXIT_INVALID if self.errors else EXIT_OK

    def to_dict(self) -> dict:
        dup = None
        if self.duplicate is not None:
            dup = {
                "key": self.duplicate.key,
                "raw_key": self.duplicate.raw_key,
                "offset": self.duplicate.offset,
                "depth": self.duplicate.depth,
                "line": self.duplicate.line,
                "column": self.duplicate.column,
            }
        return {
            "source": self.source,
            "ok": self.ok,
            "exit_code": self.exit_code,
            "duplicate": dup,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def _require_text(text: object) -> None:
    if not isinstance(text, str):
        raise KeyguardError(
            f"Config text must be str, not {type(text).__name__}"
        )


def describe_duplicate(duplicate: DuplicateKey) -> str:
    """Human-readable warning for a duplicate key."""
    msg = (
        f"Duplicate key {duplicate.key!r} at line {duplicate.line}, "
        f"column {duplicate.column}; a JSON decoder keeps only the last value"
    )
    if duplicate.raw_key != duplicate.key:
        msg += f" (written as \"{duplicate.raw_key}\")"
    return msg


def check_config_text(
    text: str,
    *,
    source: str = "<text>",
    strict: bool = False,
) -> CheckResult:
    """Check *text* for duplicate keys, and for well-formedness if *strict*.

    Without *strict*, malformed JSON is not reported: the duplicate check is
    advisory and other validation is expected to reject broken text.

    Raises:
        KeyguardError: If *text* is not a ``str``.
    """
    _require_text(text)
    result = CheckResult(source=source)
    duplicate = find_duplicate_key(text)
    if duplicate is not None:
        result.duplicate = duplicate
        result.errors.append(describe_duplicate(duplicate))
    elif "{" not in text:
        result.warnings.append("No JSON object found; nothing to check for duplicate keys")

    if strict:
        try:
            safe_json_loads(text)
        except DecodedDuplicateKeyError as e:
            # On well-formed text the scanner has already reported it.
            if duplicate is None:
                result.errors.append(f"Duplicate key {e.key!r}; a JSON decoder keeps only the last value")
        except ValueError as e:
            result.invalid = True
            result.errors.append(str(InvalidJsonError(e)))

    if result.ok:
        logger.debug("%s: no duplicate keys", source)
    return result


def ensure_unique_keys(text: str, *, source: Optional[str] = None) -> None:
    """Raise ``DuplicateKeyError`` if *text* repeats a key in one object."""
    _require_text(text)
    duplicate = find_duplicate_key(text)
    if duplicate is None:
        return
    logger.warning(
        "Blocked save of %s: duplicate key %r at line %d, column %d",
        source or "config text", duplicate.key, duplicate.line, duplicate.column,
    )
    raise DuplicateKeyError(duplicate, source=source)


def save_config_text(
    path: Union[str, Path],
    text: str,
    *,
    strict: bool = False,
    allow_duplicates: bool = False,
    encoding: str = "utf-8",
) -> Path:
    """Persist *text* to *path* unless it would silently lose a key.

    Raises:
        DuplicateKeyError: If an object repeats a key and
            *allow_duplicates* is false.  Nothing is written.
        InvalidJsonError: In strict mode, if *text* does not decode.
        KeyguardError: If *text* is not a ``str``.
        UnsafeWriteError: If *path* is a symlink.
    """
    _require_text(text)
    target = Path(path)
    if allow_duplicates:
        duplicate = find_duplicate_key(text)
        if duplicate is not None:
            logger.warning(
                "Saving %s with duplicate key %r (duplicates allowed)",
                target, duplicate.key,
            )
    else:
        ensure_unique_keys(text, source=str(target))

    if strict:
        try:
            safe_json_loads(text, reject_duplicates=not allow_duplicates)
        except ValueError as e:
            raise InvalidJsonError(e, source=str(target)) from e

    atomic_write_text(target, text, encoding=encoding)
    logger.info("Saved %s", target)
    return target.resolve()
