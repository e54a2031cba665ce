"""Logging setup for the proxy: colored console output via colorlog."""

import logging
import os
import sys

import colorlog

ROOT_LOGGER = "trendyol_proxy"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(levelname)8s] %(name)s - %(message)s"
DEBUG_FORMAT = (
    "%(log_color)s%(asctime)s [%(levelname)8s] "
    "%(name)s.%(funcName)s:%(lineno)d - %(message)s"
)

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | None = None, debug: bool = False) -> logging.Logger:
    """Configure the package logger once at process start.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL env var, then INFO.
        debug: Include function and line number in each record.
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.handlers.clear()

    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(colorlog.ColoredFormatter(
        DEBUG_FORMAT if debug else CONSOLE_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors=LOG_COLORS,
    ))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
