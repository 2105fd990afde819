import logging
import sys
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# Chatty at INFO: access lines, Supabase/Telegram HTTP traffic
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "hpack")


class InterceptHandler(logging.Handler):
    """Forwards stdlib records (uvicorn, httpx, supabase) into loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Point loguru at the frame that called logging, not at logging itself
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", error_log: Optional[str] = "logs/errors.log"):
    """
    Console sink at `level`, plus a rotating file for errors when `error_log` is set.
    Safe to call again: sinks are replaced, not stacked.
    """
    logger.remove()
    logger.add(sys.stdout, level=level.upper(), format=CONSOLE_FORMAT)
    if error_log:
        logger.add(
            error_log,
            level="ERROR",
            rotation="10 MB",
            retention="1 month",
            compression="zip",
            format=FILE_FORMAT,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["logger", "setup_logging"]
