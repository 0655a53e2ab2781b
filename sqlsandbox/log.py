"""Logging configuration using loguru.

Routes stdlib logging (uvicorn, sqlalchemy, alembic) through loguru so the
service has a single log format.  Records emitted while a workspace is being
reconciled, synced or queried carry its id in ``extra["workspace"]``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

from loguru import logger

NO_WORKSPACE = "-"


class _InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging-module frames so the reported call-site is the caller's
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def workspace_context(workspace_id: str) -> AbstractContextManager[None]:
    """Tag every record logged inside the block (including awaited calls) with *workspace_id*."""
    return logger.contextualize(workspace=workspace_id)


def setup_logging(level: str = "INFO") -> None:
    """Install loguru as the only sink.  Call once at process startup."""
    level = level.upper()

    logger.remove()
    logger.configure(extra={"workspace": NO_WORKSPACE})
    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<magenta>{extra[workspace]}</magenta> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # Engine statement echo and access logs are too chatty at INFO
    for name in ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialised (level={})", level)
