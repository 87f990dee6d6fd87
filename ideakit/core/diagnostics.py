"""
Logging helpers for ideakit.

Resolver messages can carry a context tag (typically the name of the build
or project asking for the IDE) so interleaved output from several
resolutions stays readable.
"""

import logging
from typing import Optional


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that prefixes messages with ``[context]`` when set."""

    def process(self, msg, kwargs):
        context = self.extra.get("context")
        if context:
            return f"[{context}] {msg}", kwargs
        return msg, kwargs


def get_context_logger(name: str, context: Optional[str] = None) -> ContextLogger:
    """
    Get a logger for ``name`` that tags every message with ``context``.

    Example:
        >>> log = get_context_logger(__name__, "my-plugin")
        >>> log.info("Adding IDE dependency")  # -> "[my-plugin] Adding IDE dependency"
    """
    return ContextLogger(logging.getLogger(name), {"context": context})
