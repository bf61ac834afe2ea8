"""Logging setup for the ``vectordesk`` logger hierarchy.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by the CLI.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from vectordesk.config import LoggingCfg

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_MAX_LOG_BYTES = 1024 * 1024
_BACKUP_COUNT = 3


def setup_logging(cfg: LoggingCfg | None = None) -> logging.Logger:
    """Configure and return the ``vectordesk`` logger.

    Adds a stderr handler and, when ``cfg.file`` is set, a rotating file
    handler. Calling it again only updates the level.
    """
    cfg = cfg or LoggingCfg()
    logger = logging.getLogger("vectordesk")
    logger.setLevel(getattr(logging, cfg.level.upper(), logging.WARNING))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if cfg.file:
        log_path = Path(cfg.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
