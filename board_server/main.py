"""
Board Server - Main entry point.

Usage:
    python -m board_server.main

Configuration is entirely via BOARD_* environment variables.
See config.py for all available settings.
"""

from __future__ import annotations

import logging
import sys

import json_log_formatter
import uvicorn

from .config import Settings

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on configuration.

    Args:
        settings: Server settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main() -> int:
    """Run the HTTP server."""
    settings = Settings()
    setup_logging(settings)
    logger.info(f"Starting Board Server on {settings.host}:{settings.port}")

    uvicorn.run(
        "board_server.app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
