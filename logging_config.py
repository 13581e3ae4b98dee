"""Logging configuration module."""
import logging
import os


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger from LOG_LEVEL (default INFO)."""
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
