"""Tests for logging configuration."""
import logging
from pathlib import Path

import pytest

from chatsink.logging_config import get_logger, setup_logging


@pytest.mark.unit
class TestSetupLogging:
    """Test setup_logging function."""

    def test_setup_logging_default(self) -> None:
        logger = setup_logging()

        assert logger.name == "chatsink"
        assert logger.level == logging.INFO
        assert logger.propagate is False

    def test_setup_logging_verbose(self) -> None:
        logger = setup_logging(verbose=True)

        assert logger.level == logging.DEBUG

    def test_setup_logging_level_name(self) -> None:
        logger = setup_logging(level="warning")

        assert logger.level == logging.WARNING

    def test_setup_logging_with_log_file(self, temp_dir: Path) -> None:
        """Test setup_logging with log file."""
        log_file = temp_dir / "test.log"

        logger = setup_logging(log_file=str(log_file))
        logger.info("sink started")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2  # Console + File
        assert "sink started" in log_file.read_text()

    def test_setup_logging_twice_does_not_duplicate_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1


@pytest.mark.unit
class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger(self) -> None:
        logger = get_logger("reconciler")

        assert logger.name == "chatsink.reconciler"

    def test_get_logger_module_name(self) -> None:
        """Test that module names already under chatsink are not prefixed twice."""
        logger = get_logger("chatsink.bucket.schema_gate")

        assert logger.name == "chatsink.bucket.schema_gate"
        assert logger.parent is not None
