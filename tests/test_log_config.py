import json
import sys

import pytest
from loguru import logger

from weblattice.log_config import configure_logging
from weblattice.metrics import console_sink
from weblattice.models import MetricRecord


def test_configure_logging_default_level():
    """Test configure_logging with default INFO level and stderr sink."""
    logger.remove()
    configure_logging()

    assert len(logger._core.handlers) == 1
    handler = next(iter(logger._core.handlers.values()))
    assert handler._levelno == logger.level("INFO").no


@pytest.mark.parametrize("level", ["debug", "WARNING"])
def test_configure_logging_custom_level(level):
    logger.remove()
    configure_logging(level=level)
    handler = next(iter(logger._core.handlers.values()))
    assert handler._levelno == logger.level(level.upper()).no


def test_configure_logging_removes_existing_handlers():
    """Test that configure_logging removes pre-existing handlers."""
    logger.remove()
    logger.add(lambda _: None, level="ERROR")
    assert len(logger._core.handlers) == 1

    configure_logging(level="INFO")

    assert len(logger._core.handlers) == 1
    handler = next(iter(logger._core.handlers.values()))
    assert handler._levelno == logger.level("INFO").no


def test_configure_logging_custom_sink():
    messages: list[str] = []
    configure_logging(level="INFO", sink=messages.append)

    logger.info("metrics go here")

    assert any("metrics go here" in message for message in messages)


def test_metrics_lines_go_to_their_own_sink():
    messages: list[str] = []
    metric_lines: list[str] = []
    configure_logging(level="INFO", sink=messages.append, metrics_sink=metric_lines.append)

    console_sink(
        MetricRecord(
            url="/x", method="GET", start_time=1.0, end_time=2.0, duration=1000.0,
            status=200, success=True,
        )
    )
    logger.info("request sent")

    assert len(metric_lines) == 1
    assert metric_lines[0].startswith("[WebLattice Metrics] {")
    payload = json.loads(metric_lines[0].removeprefix("[WebLattice Metrics] "))
    assert payload["status"] == 200
    assert not any("WebLattice Metrics" in message for message in messages)
    assert any("request sent" in message for message in messages)


def test_metrics_lines_stay_in_main_sink_by_default():
    messages: list[str] = []
    configure_logging(level="INFO", sink=messages.append)

    console_sink(
        MetricRecord(
            url="/x", method="GET", start_time=1.0, end_time=2.0, duration=1000.0,
            status=500, success=False,
        )
    )

    assert any("[WebLattice Metrics]" in message for message in messages)


@pytest.fixture(autouse=True)
def reset_logger_after_test():
    """Fixture to reset Loguru to a default state after each test in this module."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="INFO")
