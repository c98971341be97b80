from __future__ import annotations

import logging

LOGGER_NAME = "bi_core"
_CONFIGURED = False


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach one stream handler to the package loggers, once."""
    global _CONFIGURED
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if not _CONFIGURED:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        for name in (LOGGER_NAME, "api"):
            logger = logging.getLogger(name)
            logger.handlers = [handler]
            logger.propagate = False
        _CONFIGURED = True
    for name in (LOGGER_NAME, "api"):
        logging.getLogger(name).setLevel(level)
    return logging.getLogger(LOGGER_NAME)
