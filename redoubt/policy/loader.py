"""
Loading of the YAML policy document.

The document is parsed with a SafeLoader that also rejects duplicate
mapping keys, then validated against :class:`PolicyConfig`.
"""
import logging
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from redoubt.policy.models import PolicyConfig
from redoubt.units.registry import describe_validation_error

logger = logging.getLogger(__name__)

MERGE_TAG = "tag:yaml.org,2002:merge"


class ConfigError(Exception):
    """Raised when the policy document cannot be read or is invalid."""


class StrictLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate keys instead of keeping the last one."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_yaml(text: str) -> Any:
    """
    Parse YAML text with :class:`StrictLoader`.

    Raises:
        ConfigError: On YAML syntax errors or duplicate keys
    """
    try:
        return yaml.load(text, Loader=StrictLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"can't parse policy document: {e}") from e


def load_config(data: Any) -> PolicyConfig:
    """
    Validate an already parsed policy document.

    An empty document yields an empty policy list.

    Raises:
        ConfigError: If the document does not match the policy schema
    """
    if data is None:
        data = {}
    try:
        return PolicyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid policy document: {describe_validation_error(e)}") from e


def load_config_file(path: Union[str, Path]) -> PolicyConfig:
    """
    Read and validate the policy document at ``path``.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"can't read config file {path}: {e}") from e

    config = load_config(parse_yaml(text))
    logger.info("Loaded %d policies from %s", len(config.policies), path)
    return config
