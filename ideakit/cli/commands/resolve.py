"""
Resolve command: download, extract and describe a remote IDE distribution.
"""

import logging

from ideakit.cli.utils import dependency_summary, load_config, print_error, print_yaml
from ideakit.core.exceptions import ConfigurationError
from ideakit.dependency.manager import IdeaDependencyManager
from ideakit.dependency.models import PlatformRequest

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the resolve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    request = PlatformRequest(
        type=args.type,
        version=args.version,
        want_sources=args.sources,
        extra_names=tuple(args.extra or ()),
        with_kotlin=args.with_kotlin,
    )
    logger.debug(f"Resolving {request}")

    try:
        manager = IdeaDependencyManager(load_config(args))
        dependency = manager.resolve_remote(request)
    except ConfigurationError as e:
        print_error(str(e))
        return 1

    registration = declaration = None
    if args.descriptor:
        registration, declaration = manager.register(dependency)

    print_yaml(dependency_summary(dependency, registration, declaration))
    return 0
