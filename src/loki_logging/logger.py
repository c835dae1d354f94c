"""
Diagnostics logging for the client itself

The client reports its own failures (render errors, dropped batches) through
the standard logging module. These loggers never propagate, so a LokiHandler
attached to the root logger cannot feed the client's own errors back into it.
"""

import logging
import os
import sys
from typing import Dict

LOGGER_NAMESPACE = "loki_logging"

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured: Dict[str, logging.Logger] = {}


def _resolve_level() -> int:
    """Read the diagnostics level from the environment"""
    level_name = os.getenv("LOKI_LOGGING_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.WARNING


def _root_logger() -> logging.Logger:
    """Configure the namespace logger once"""
    if LOGGER_NAMESPACE in _configured:
        return _configured[LOGGER_NAMESPACE]

    root = logging.getLogger(LOGGER_NAMESPACE)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        root.addHandler(handler)
    root.setLevel(_resolve_level())
    root.propagate = False

    _configured[LOGGER_NAMESPACE] = root
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a diagnostics logger below the package namespace"""
    root = _root_logger()
    if name == LOGGER_NAMESPACE:
        return root
    if not name.startswith(LOGGER_NAMESPACE + "."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)


def is_internal_logger(name: str) -> bool:
    """Check whether a logger name belongs to the client's own diagnostics"""
    return name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + ".")
