"""
Application Settings

Environment configuration for the application.
"""

import logging
import os
from dataclasses import dataclass

DEFAULT_VISIBILITY_PACKAGE = "//tools/build/visibility"
LOG_FORMAT = '%(levelname)s: %(message)s'


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Application settings from environment."""

    # Package holding the visibility definitions
    visibility_package: str = DEFAULT_VISIBILITY_PACKAGE

    # Analysis
    recommend_group_threshold: int = 3
    max_workers: int = 1

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.recommend_group_threshold < 1:
            raise ValueError("recommend_group_threshold must be at least 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            visibility_package=os.getenv("VISIBILITY_PACKAGE", DEFAULT_VISIBILITY_PACKAGE),
            recommend_group_threshold=_env_int("VISIBILITY_RECOMMEND_GROUP_THRESHOLD", 3),
            max_workers=_env_int("VISIBILITY_MAX_WORKERS", 1),
            log_level=os.getenv("VISIBILITY_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging the same way for every entry point.

    The handler and format are installed once; the level is applied on
    every call.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
