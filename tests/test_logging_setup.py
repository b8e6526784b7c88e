# tests/test_logging_setup.py
"""Tests for the structlog configuration of the fml logger."""

import logging
import structlog

from fml.logging_setup import configure_logging


def test_level_and_single_handler():
    configure_logging("debug")
    configure_logging("info")
    package_logger = logging.getLogger("fml")
    assert package_logger.level == logging.INFO
    assert len(package_logger.handlers) == 1


def test_unknown_level_falls_back_to_warning():
    configure_logging("chatty")
    assert logging.getLogger("fml").level == logging.WARNING


def test_json_renderer_is_selected():
    configure_logging("warning", force_json_logs=True)
    formatter = logging.getLogger("fml").handlers[0].formatter
    assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
    assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)
