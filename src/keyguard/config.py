"""keyguard YAML config loader and validator.

Config shape::

    keyguard:
      strict: false          # also require well-formed JSON
      encoding: utf-8
      max_bytes: 10485760    # larger files are reported, not scanned
      extensions: [".json"]  # used when a directory is checked
      exclude: ["node_modules", ".git"]

Lookup order in :func:`resolve_config`: explicit path, then the
``KEYGUARD_CONFIG`` environment variable, then ``./keyguard.yaml``, then
built-in defaults.
"""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import DecodedDuplicateKeyError, KeyguardConfigError
from .utils.safe_yaml import safe_yaml_load

logger = logging.getLogger("keyguard.config")

CONFIG_ENV_VAR = "KEYGUARD_CONFIG"
DEFAULT_CONFIG_NAME = "keyguard.yaml"

_KNOWN_FIELDS = frozenset({"strict", "encoding", "max_bytes", "extensions", "exclude"})


@dataclass
class KeyguardConfig:
    """Settings for checking config files."""
    strict: bool = False
    encoding: str = "utf-8"
    max_bytes: int = 10 * 1024 * 1024
    extensions: list[str] = field(default_factory=lambda: [".json"])
    exclude: list[str] = field(default_factory=lambda: ["node_modules", ".git"])
    source_path: str = ""


def _as_str_list(value: Any, name: str) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise KeyguardConfigError(f"keyguard.{name} must be a list of strings")
    return list(value)


def parse_config(raw: Any, source_path: str = "") -> KeyguardConfig:
    """Validate a decoded config mapping and build a ``KeyguardConfig``."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise KeyguardConfigError(
            "Config file must contain a YAML mapping (got "
            f"{type(raw).__name__})"
        )

    section = raw.get("keyguard", {})
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise KeyguardConfigError("keyguard section must be a mapping")

    for name in sorted(set(section) - _KNOWN_FIELDS):
        logger.warning("Unknown config field 'keyguard.%s' will be ignored.", name)

    config = KeyguardConfig(source_path=source_path)

    strict = section.get("strict", config.strict)
    if not isinstance(strict, bool):
        raise KeyguardConfigError("keyguard.strict must be true or false")
    config.strict = strict

    encoding = section.get("encoding", config.encoding)
    if not isinstance(encoding, str):
        raise KeyguardConfigError("keyguard.encoding must be a string")
    try:
        codecs.lookup(encoding)
    except LookupError as e:
        raise KeyguardConfigError(f"Unknown encoding: '{encoding}'") from e
    config.encoding = encoding

    max_bytes = section.get("max_bytes", config.max_bytes)
    if isinstance(max_bytes, bool) or not isinstance(max_bytes, int):
        raise KeyguardConfigError("keyguard.max_bytes must be an integer")
    if max_bytes < 1:
        raise KeyguardConfigError("keyguard.max_bytes must be a positive integer")
    config.max_bytes = max_bytes

    if "extensions" in section:
        extensions = _as_str_list(section["extensions"], "extensions")
        for ext in extensions:
            if not ext.startswith("."):
                raise KeyguardConfigError(
                    f"Invalid extension: '{ext}'. Extensions must start with '.'"
                )
        config.extensions = extensions

    if "exclude" in section:
        config.exclude = _as_str_list(section["exclude"], "exclude")

    return config


def load_config(config_path: str) -> KeyguardConfig:
    """Load and validate a keyguard YAML config file.

    Raises:
        KeyguardConfigError: If the file is missing, is not valid YAML,
            repeats a key, or holds invalid values.
    """
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.is_file():
        raise KeyguardConfigError(f"Config file not found: {config_path}")

    try:
        raw = safe_yaml_load(config_file.read_text())
    except DecodedDuplicateKeyError as e:
        raise KeyguardConfigError(
            f"{config_file}:{e.line}:{e.column}: key {e.key!r} is set more "
            "than once; only the last value would take effect",
            line=e.line,
            column=e.column,
        ) from e
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise KeyguardConfigError(
            f"Invalid YAML in config file: {e}",
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from e

    config = parse_config(raw, source_path=str(config_file))
    logger.debug("Loaded config from %s", config_file)
    return config


def resolve_config(config_path: Optional[str] = None) -> KeyguardConfig:
    """Find and load the active config, falling back to defaults."""
    if config_path:
        return load_config(config_path)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return load_config(env_path)

    local = Path.cwd() / DEFAULT_CONFIG_NAME
    if local.is_file():
        return load_config(str(local))

    return KeyguardConfig()
