"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional

from loguru import logger

if TYPE_CHECKING:
    from checkout_client.config import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(config: Optional["LoggingConfig"] = None) -> None:
    """Replace loguru's default handler with the client's sinks.

    Args:
        config: Logging section of the pipeline config (defaults if None)
    """
    if config is None:
        from checkout_client.config import LoggingConfig
        config = LoggingConfig()

    logger.remove()
    logger.add(sys.stderr, level=config.level, format=CONSOLE_FORMAT, colorize=True)

    if config.log_path is not None:
        config.log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            config.log_path,
            rotation="20 MB",
            retention="10 days",
            level="DEBUG",
            format=FILE_FORMAT,
            enqueue=True,  # socket.io callbacks log from a background thread
        )


def get_logger(name: Optional[str] = None):
    """Get a logger instance with the given name.

    Args:
        name: Module name for the logger (usually __name__)

    Returns:
        Configured logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


__all__ = ["logger", "configure_logging", "get_logger"]
