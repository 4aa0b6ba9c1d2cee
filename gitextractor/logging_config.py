"""Logging setup shared by the API process and Celery workers."""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single stdout handler."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
