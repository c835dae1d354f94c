"""
Tests for the client's diagnostics loggers
"""

import logging

from loki_logging import get_logger
from loki_logging.logger import is_internal_logger


def test_loggers_live_under_package_namespace():
    assert get_logger("transmitter").name == "loki_logging.transmitter"
    assert get_logger("loki_logging.client").name == "loki_logging.client"
    assert get_logger("loki_logging") is logging.getLogger("loki_logging")


def test_namespace_does_not_propagate():
    root = get_logger("loki_logging")
    assert root.propagate is False
    assert root.handlers


def test_is_internal_logger():
    assert is_internal_logger("loki_logging")
    assert is_internal_logger("loki_logging.dispatcher")
    assert not is_internal_logger("loki_logging_extras")
    assert not is_internal_logger("app.loki_logging")
