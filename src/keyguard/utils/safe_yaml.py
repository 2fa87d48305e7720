"""YAML loading for keyguard's own config file.

PyYAML's ``safe_load()`` overwrites a repeated mapping key just like
``json.loads()`` does, so a config that sets ``strict:`` twice would
silently use the second value.  The loader below refuses that and points
at the repeated key itself, not at the mapping that holds it.

Keys pulled in through a ``<<`` merge may be overridden explicitly; only
keys written more than once in the same mapping count as duplicates.
"""

from __future__ import annotations

from typing import IO, Union

import yaml

from ..errors import DecodedDuplicateKeyError

_MERGE_TAG = "tag:yaml.org,2002:merge"


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader whose mappings reject keys written twice."""

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen: set = set()
            for key_node, _value_node in node.value:
                if key_node.tag == _MERGE_TAG:
                    continue
                key = self.construct_object(key_node, deep=deep)
                try:
                    repeated = key in seen
                except TypeError:
                    # Unhashable keys are reported by the base constructor.
                    continue
                if repeated:
                    mark = key_node.start_mark
                    raise DecodedDuplicateKeyError(
                        key, kind="YAML", line=mark.line + 1, column=mark.column + 1,
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def safe_yaml_load(stream: Union[str, IO[str]]) -> object:
    """Load YAML, raising ``DecodedDuplicateKeyError`` on a repeated key."""
    return yaml.load(stream, Loader=ConfigLoader)
