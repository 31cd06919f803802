"""Tests for logging_config.py utility functions."""

import logging
import os
import sys
from unittest.mock import patch

from image_tasks.core.logging_config import FORMATS, get_logger, logger, setup_logger


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_default_parameters(self):
        """Test setup_logger with default parameters."""
        with patch.dict(os.environ, {}, clear=True):
            test_logger = setup_logger()
        assert test_logger.name == "image-tasks"
        assert test_logger.level == logging.INFO
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate

    def test_setup_logger_custom_level_by_parameter(self):
        """Test setup_logger with custom level via parameter."""
        test_logger = setup_logger(name="test-tasks-debug", level="DEBUG")
        assert test_logger.level == logging.DEBUG

    def test_setup_logger_custom_level_by_env_var(self):
        """Test setup_logger with custom level via environment variable."""
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
            test_logger = setup_logger(name="test-tasks-env-level")
            assert test_logger.level == logging.WARNING

    def test_setup_logger_invalid_level_defaults_to_info(self):
        """Test setup_logger with invalid level defaults to INFO."""
        test_logger = setup_logger(name="test-tasks-invalid", level="INVALID_LEVEL")
        assert test_logger.level == logging.INFO

    def test_setup_logger_structured_format(self):
        """Test setup_logger with structured format."""
        with patch.dict(os.environ, {}, clear=True):
            test_logger = setup_logger(name="test-tasks-structured", format_type="structured")
        format_string = test_logger.handlers[0].formatter._fmt

        assert format_string == FORMATS["structured"]
        assert "%(lineno)d" in format_string

    def test_setup_logger_env_format_override(self):
        """Test setup_logger format override via environment variable."""
        with patch.dict(os.environ, {"LOG_FORMAT": "simple"}):
            test_logger = setup_logger(name="test-tasks-env-format", format_type="structured")
        format_string = test_logger.handlers[0].formatter._fmt

        assert "%(filename)s" not in format_string

    def test_setup_logger_unknown_format_uses_simple(self):
        """Test that an unknown format name falls back to the simple format."""
        with patch.dict(os.environ, {}, clear=True):
            test_logger = setup_logger(name="test-tasks-unknown-format", format_type="xml")

        assert test_logger.handlers[0].formatter._fmt == FORMATS["simple"]

    def test_setup_logger_no_duplicate_handlers(self):
        """Test that setup_logger doesn't add duplicate handlers."""
        first = setup_logger(name="test-tasks-no-duplicates")
        second = setup_logger(name="test-tasks-no-duplicates")

        assert first is second
        assert len(first.handlers) == 1

    def test_setup_logger_handler_uses_stdout(self):
        """Test that logger handler uses stdout."""
        test_logger = setup_logger(name="test-tasks-stdout")
        assert test_logger.handlers[0].stream is sys.stdout


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_custom_name(self):
        """Test get_logger with custom name."""
        test_logger = get_logger(name="test-tasks-get-logger")
        assert test_logger.name == "test-tasks-get-logger"
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate


class TestDefaultLogger:
    """Tests for default logger instance."""

    def test_default_logger_exists(self):
        """Test that default logger instance is created."""
        assert isinstance(logger, logging.Logger)
        assert logger.name == "image-tasks"
        assert not logger.propagate
