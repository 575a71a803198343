"""Process-wide logging setup."""
from __future__ import annotations

import logging

from story_maker import config

_CONFIGURED = False


def configure_logging(level_name: str | None = None) -> None:
    """Attach one stream handler to the root logger, once per process."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    name = (level_name or config.STORY_MAKER_LOG_LEVEL).upper()
    level = getattr(logging, name, logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    _CONFIGURED = True
