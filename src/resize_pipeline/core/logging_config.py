"""
Logging for the resize pipeline.

Components log under children of the ``resize-pipeline`` logger
("resize-pipeline.executor", "resize-pipeline.cascade", ...). Only the
parent carries a handler and a level, so one switch governs the package.
"""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER_NAME = "resize-pipeline"
HANDLER_NAME = "resize-pipeline-stdout"

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def pipeline_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    """The stdout handler installed by ``setup_logger``, if any."""
    for handler in logger.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    return None


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure ``name`` with a stdout handler.

    The level comes from ``level``, else ``LOG_LEVEL``, else INFO, and is
    only applied on first configuration unless passed explicitly. The format
    comes from ``LOG_FORMAT``, else ``format_type`` ("structured" or "simple").
    """
    logger = logging.getLogger(name)
    configured = pipeline_handler(logger) is not None

    if level or not configured:
        logger.setLevel(_resolve_level(level))

    if not configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        if os.getenv("LOG_FORMAT", format_type).lower() == "structured":
            handler.setFormatter(logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        else:
            handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """``get_logger("cascade")`` is the "resize-pipeline.cascade" logger."""
    setup_logger()
    if not component:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")


def set_debug_logging(enabled: bool = True) -> None:
    """Switch every pipeline logger to DEBUG (or back to INFO)."""
    setup_logger().setLevel(logging.DEBUG if enabled else logging.INFO)


logger = setup_logger()
