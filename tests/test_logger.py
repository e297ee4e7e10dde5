#!/usr/bin/env python3
"""Test suite for the logging helpers"""

import logging

import pytest

from pymultipath.logger import (ROOT_LOGGER, LogContext, get_logger, indent, setup_logger,
                                setup_logger_from_config)


@pytest.fixture
def clean_root():
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in root.handlers:
        handler.close()
    root.handlers = []
    root.setLevel(logging.NOTSET)


def test_file_logging(tmp_path, clean_root):
    log_file = tmp_path / "mp.log"
    setup_logger(level="DEBUG", log_file=str(log_file), console=False)
    get_logger("pymultipath.multipath.estimator").debug("pass 1")
    for handler in logging.getLogger(ROOT_LOGGER).handlers:
        handler.flush()
    text = log_file.read_text()
    assert "pass 1" in text
    assert "\033[" not in text


def test_trace_level(clean_root, caplog):
    logger = setup_logger(level="TRACE", console=False)
    with caplog.at_level(5, logger=ROOT_LOGGER):
        logger.trace("fine grained")
    assert "fine grained" in caplog.text


def test_unknown_level(clean_root):
    with pytest.raises(ValueError):
        setup_logger(level="LOUD")


def test_log_context_restores_level(clean_root):
    logger = setup_logger(level="INFO", console=False)
    with LogContext(logger, "ERROR"):
        assert logger.level == logging.ERROR
    assert logger.level == logging.INFO


def test_module_levels(clean_root):
    setup_logger_from_config({'level': 'WARNING', 'console': False,
                              'module_levels': {'pymultipath.residuals.store': 'DEBUG'}})
    assert logging.getLogger(ROOT_LOGGER).level == logging.WARNING
    assert logging.getLogger('pymultipath.residuals.store').level == logging.DEBUG
    logging.getLogger('pymultipath.residuals.store').setLevel(logging.NOTSET)


def test_indent():
    assert indent("a\nb", 2) == "  a\n  b"
    assert indent("step") == "    step"
