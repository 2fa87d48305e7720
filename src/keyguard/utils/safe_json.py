"""Strict JSON decoding for config text that must also be well-formed.

The raw-text scanner in :mod:`keyguard.scanner` is advisory and never
raises.  Strict mode needs a real decode as well, and that decode must not
quietly apply last-wins to a repeated key or accept ``NaN``/``Infinity``,
which are not JSON.  Repeats surface as
:class:`~keyguard.errors.DecodedDuplicateKeyError` carrying the key, so
callers can tell them apart from syntax errors without reading messages.
"""

from __future__ import annotations

import json
from typing import IO, Optional

from ..errors import DecodedDuplicateKeyError


def first_duplicate(pairs: list[tuple[str, object]]) -> Optional[str]:
    """Return the first key that repeats within *pairs*, or ``None``."""
    seen: set[str] = set()
    for key, _value in pairs:
        if key in seen:
            return key
        seen.add(key)
    return None


def _unique_object(pairs: list[tuple[str, object]]) -> dict:
    key = first_duplicate(pairs)
    if key is not None:
        raise DecodedDuplicateKeyError(key)
    return dict(pairs)


def _refuse_constant(constant: str) -> object:
    raise ValueError(
        f"Non-standard JSON constant not allowed: {constant!r}. "
        f"JSON does not support NaN or Infinity."
    )


def safe_json_loads(s: str, *, reject_duplicates: bool = True) -> object:
    """Decode JSON text strictly.

    Raises:
        DecodedDuplicateKeyError: An object repeats a key (unless
            *reject_duplicates* is false, in which case last-wins applies).
        ValueError: A non-standard constant such as ``NaN``.
        json.JSONDecodeError: The text is not JSON.
    """
    return json.loads(
        s,
        object_pairs_hook=_unique_object if reject_duplicates else dict,
        parse_constant=_refuse_constant,
    )


def safe_json_load(fp: IO[str], *, reject_duplicates: bool = True) -> object:
    """Read *fp* and decode it with :func:`safe_json_loads`."""
    return safe_json_loads(fp.read(), reject_duplicates=reject_duplicates)
