"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

from audora.core.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger to write to stdout.

    Args:
        level: Log level name; defaults to `settings.log_level`.
    """
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
