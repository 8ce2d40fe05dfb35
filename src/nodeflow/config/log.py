"""Logging setup for the CLI and server entry points."""

import logging

from nodeflow.config.schema import LoggingConfig


def configure_logging(config: LoggingConfig) -> None:
    """Apply level and format to the root logger.

    Args:
        config: Logging section of the nodeflow configuration
    """
    logging.basicConfig(level=config.level, format=config.format, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
