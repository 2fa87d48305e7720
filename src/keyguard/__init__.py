"""keyguard — catch duplicate JSON keys before config text is saved.

JSON decoders keep only the last value of a repeated key.  keyguard scans
the raw text so the repeat can be reported instead of silently persisted.
"""

from .version import __version__
from .scanner import has_duplicate_keys, find_duplicate_key, DuplicateKey
from .guard import check_config_text, ensure_unique_keys, save_config_text, CheckResult
from .errors import (
    KeyguardError,
    DuplicateKeyError,
    InvalidJsonError,
    KeyguardConfigError,
    UnsafeWriteError,
)

__all__ = [
    "__version__",
    "has_duplicate_keys",
    "find_duplicate_key",
    "DuplicateKey",
    "check_config_text",
    "ensure_unique_keys",
    "save_config_text",
    "CheckResult",
    "KeyguardError",
    "DuplicateKeyError",
    "InvalidJsonError",
    "KeyguardConfigError",
    "UnsafeWriteError",
]
