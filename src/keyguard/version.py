"""Single source of truth for the keyguard version."""

__version__ = "0.3.0"
