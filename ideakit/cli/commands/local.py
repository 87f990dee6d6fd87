"""
Local command: describe an IDE installed on disk.
"""

from ideakit.cli.utils import dependency_summary, load_config, print_error, print_yaml
from ideakit.core.exceptions import ConfigurationError
from ideakit.dependency.manager import IdeaDependencyManager


def run(args) -> int:
    """
    Run the local command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    try:
        manager = IdeaDependencyManager(load_config(args))
        dependency = manager.resolve_local(
            args.path, args.sources, with_kotlin=args.with_kotlin
        )
    except ConfigurationError as e:
        print_error(str(e))
        return 1

    registration = declaration = None
    if args.descriptor:
        registration, declaration = manager.register(dependency)

    print_yaml(dependency_summary(dependency, registration, declaration))
    return 0
