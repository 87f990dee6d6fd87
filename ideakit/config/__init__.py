"""
Configuration loading for ideakit.
"""

from .parser import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_REPOSITORY_URL,
    ResolverConfig,
    config_from_dict,
    find_config,
    parse_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_REPOSITORY_URL",
    "ResolverConfig",
    "config_from_dict",
    "find_config",
    "parse_config",
]
