"""
Shared utilities for CLI commands.

Provides common functionality used across CLI commands: configuration
loading and YAML rendering of resolved dependencies.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ideakit.config.parser import ResolverConfig, find_config, parse_config
from ideakit.dependency.descriptor import DependencyDeclaration, RepositoryRegistration
from ideakit.dependency.models import ResolvedDependency

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def load_config(args, project_root: Optional[Path] = None) -> ResolverConfig:
    """
    Load the resolver configuration for a command.

    ``--config`` wins; otherwise ``ideakit.yaml`` in the project root (the
    current directory by default) is used if present, else the defaults.

    Raises:
        ConfigError: If the configuration file is missing or invalid
    """
    config_file = getattr(args, "config", None)
    if config_file is None:
        config_file = find_config(project_root or Path.cwd())

    if config_file is None:
        logger.debug("No config file found, using defaults")
        return ResolverConfig()

    logger.debug(f"Loading configuration from {config_file}")
    return parse_config(Path(config_file))


# ============================================================================
# Output Formatting
# ============================================================================


def dependency_summary(
    dependency: ResolvedDependency,
    registration: Optional[RepositoryRegistration] = None,
    declaration: Optional[DependencyDeclaration] = None,
) -> Dict[str, Any]:
    """Plain-data view of a resolved dependency for printing."""
    summary: Dict[str, Any] = {
        "name": dependency.name,
        "version": dependency.version,
        "build_number": dependency.build_number,
        "layout": dependency.layout.value,
        "classes": str(dependency.classes),
        "sources": str(dependency.sources) if dependency.sources else None,
        "jars": len(dependency.jar_files),
        "plugins": len(dependency.plugins_registry),
        "extra_dependencies": {
            extra.name: str(extra.classes) for extra in dependency.extra_dependencies
        },
    }
    if registration is not None:
        summary["repository"] = {
            "url": registration.url,
            "ivy_pattern": registration.ivy_pattern,
            "artifact_patterns": list(registration.artifact_patterns),
        }
    if declaration is not None:
        summary["dependency"] = declaration.notation()
    return summary


def print_yaml(data: Dict[str, Any], file=None):
    """Print data as block-style YAML, keeping key order."""
    print(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip(),
        file=file or sys.stdout,
    )


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)
