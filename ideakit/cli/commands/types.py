"""
Types command: list supported platform types.
"""

from ideakit.dependency.coordinates import resolve_coordinates, supported_platform_types


def run(args) -> int:
    """
    Run the types command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    for platform_type in supported_platform_types():
        coordinates = resolve_coordinates(platform_type, "0", want_sources=True)
        sources = "sources" if coordinates.sources_available else "no sources"
        print(
            f"{platform_type:<4} {coordinates.group}:{coordinates.artifact_name} ({sources})"
        )
    return 0
