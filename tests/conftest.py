"""Shared test configuration for the keyguard test suite.

Clears KEYGUARD_CONFIG so a developer's own config file never leaks into
config lookup tests.
"""

import os

os.environ.pop("KEYGUARD_CONFIG", None)
