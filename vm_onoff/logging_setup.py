"""Process-wide logging configuration."""

import logging
import os
import sys


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger.

    The level comes from ``level``, then the ``LOG_LEVEL`` environment
    variable, then defaults to INFO. Unknown names fall back to INFO.
    """
    lvl_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, lvl_name, logging.INFO)

    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )
    # httpx logs every request at INFO; keep it quiet unless debugging
    if lvl > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
