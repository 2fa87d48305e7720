"""Duplicate-key scanner for raw JSON text.

Background
----------
``json.loads()`` keeps the last value when an object repeats a key, so a
config document can hold fewer effective entries than the editor shows.
Once the text has been decoded the duplicate is gone and cannot be observed,
which is why this module inspects the raw text directly instead of going
through a decoder.

The scan is a single left-to-right pass.  Only ``{`` and ``}`` outside string
literals change scope; array brackets are ignored because keys only exist
inside objects.  A string literal followed (after whitespace) by ``:`` is a
key candidate.  Key candidates are compared after decoding their escape
sequences, so ``"\\u0061"`` and ``"a"`` collide.

The per-depth registry is a flat list of sets indexed by depth rather than a
stack of open objects.  During one forward pass only one object per depth is
open at a time, so the two are equivalent as long as opening a brace always
resets the set at its depth.  Without that reset, keys from a closed sibling
object would leak into the next one.

The scanner is advisory and fails open: malformed input, unbalanced braces or
a bad escape never raise, they simply produce "no duplicate found".
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("keyguard.scanner")

# Whitespace allowed between a key string and its colon (RFC 8259 ws).
_KEY_WS = frozenset(" \t\n\r")


@dataclass(frozen=True)
class DuplicateKey:
    """Second occurrence of a key inside one object scope."""
    key: str
    raw_key: str
    offset: int
    depth: int
    line: int
    column: int


def decode_key(raw_key: str) -> str:
    """Decode the escape sequences of a raw key body.

    The body is wrapped as a standalone string literal and decoded on its
    own, never the surrounding document.  Falls back to the raw text when
    the escapes are malformed.
    """
    try:
        return json.loads('"' + raw_key + '"')
    except ValueError:
        return raw_key


def _position(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based (line, column) of *offset*."""
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _scan(text: str) -> Optional[DuplicateKey]:
    i = 0
    length = len(text)
    depth = 0
    key_sets: list[set[str]] = []

    while i < length:
        ch = text[i]
        if ch == '"':
            quote_at = i
            i += 1
            while i < length:
                c = text[i]
                if c == "\\":
                    i += 2
                elif c == '"':
                    break
                else:
                    i += 1
            raw_key = text[quote_at + 1:i]
            i += 1

            j = i
            while j < length and text[j] in _KEY_WS:
                j += 1
            if j < length and text[j] == ":":
                key = decode_key(raw_key)
                # Keys outside any object (depth 0, or negative after a
                # stray "}") are neither flagged nor registered.
                if 0 <= depth < len(key_sets):
                    seen = key_sets[depth]
                    if key in seen:
                        line, column = _position(text, quote_at)
                        return DuplicateKey(
                            key=key,
                            raw_key=raw_key,
                            offset=quote_at,
                            depth=depth,
                            line=line,
                            column=column,
                        )
                    seen.add(key)
        elif ch == "{":
            depth += 1
            while len(key_sets) <= depth:
                key_sets.append(set())
            key_sets[depth] = set()
            i += 1
        elif ch == "}":
            depth -= 1
            i += 1
        else:
            i += 1

    return None


def find_duplicate_key(text: str) -> Optional[DuplicateKey]:
    """Return the first duplicate key in *text*, or ``None``.

    Never raises: any internal failure is reported as ``None``.
    """
    try:
        return _scan(text)
    except Exception:
        logger.debug("Duplicate-key scan aborted; treating as clean", exc_info=True)
        return None


def has_duplicate_keys(text: str) -> bool:
    """Return True if any object in *text* repeats a key.

    Keys are compared after escape decoding and only within the object
    that is currently open at their depth; sibling objects and nested
    objects never share a scope.  Malformed input yields False.
    """
    return find_duplicate_key(text) is not None
