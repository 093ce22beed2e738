"""
Configuration Package

Environment settings and logging setup.
"""

from .settings import Settings, configure_logging, DEFAULT_VISIBILITY_PACKAGE, LOG_FORMAT

__all__ = [
    "Settings",
    "configure_logging",
    "DEFAULT_VISIBILITY_PACKAGE",
    "LOG_FORMAT",
]
