from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

from image_beautifier.core.logging_config import LoggingConfigurator, LoggingOptions


@pytest.fixture()
def logger():
    logger = logging.getLogger("image_beautifier.tests.logging")
    logger.propagate = False
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def test_file_handler_writes_component_field(tmp_path: Path, logger: logging.Logger) -> None:
    configurator = LoggingConfigurator(
        LoggingOptions(log_directory=tmp_path, enable_console=False),
        logger=logger,
    )
    configurator.configure()

    logger.info("Preview updated", extra={"component": "RenderController"})
    logger.warning("No component supplied")
    configurator.shutdown()

    assert configurator.log_path == tmp_path / "image_beautifier.log"
    contents = configurator.log_path.read_text(encoding="utf-8")
    assert "| INFO | RenderController | Preview updated" in contents
    assert "| WARNING | image_beautifier.tests.logging | No component supplied" in contents
    assert logger.handlers == []


def test_rotating_handler_uses_configured_limits(tmp_path: Path, logger: logging.Logger) -> None:
    configurator = LoggingConfigurator(
        LoggingOptions(log_directory=tmp_path, enable_console=False, max_bytes=1024, backup_count=2),
        logger=logger,
    )
    configurator.configure()

    (handler,) = logger.handlers
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 1024
    assert handler.backupCount == 2


def test_developer_diagnostics_enable_debug(tmp_path: Path, logger: logging.Logger) -> None:
    configurator = LoggingConfigurator(
        LoggingOptions(log_directory=tmp_path, developer_diagnostics=True),
        logger=logger,
    )
    configurator.configure()

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert all(handler.level == logging.DEBUG for handler in logger.handlers)


def test_configure_replaces_previous_handlers(tmp_path: Path, logger: logging.Logger) -> None:
    logger.addHandler(logging.NullHandler())
    configurator = LoggingConfigurator(
        LoggingOptions(log_directory=tmp_path, enable_file=False),
        logger=logger,
    )

    configurator.configure()

    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0], logging.NullHandler)
