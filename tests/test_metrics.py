"""Tests for metric recording."""

import json
from unittest.mock import MagicMock

import pytest
from loguru import logger

from weblattice.config import MetricsSettings
from weblattice.metrics import record_metrics
from weblattice.models import MetricRecord


@pytest.fixture
def record() -> MetricRecord:
    return MetricRecord(
        url="/users?page=1",
        method="GET",
        start_time=1000.0,
        end_time=1000.25,
        duration=250.0,
        status=200,
        success=True,
    )


@pytest.fixture
def log_messages():
    messages: list[str] = []
    handler_id = logger.add(messages.append, format="{message}", level="INFO")
    yield messages
    logger.remove(handler_id)


def test_disabled_records_nothing(record, log_messages):
    sink = MagicMock()
    result = record_metrics(record, MetricsSettings(enabled=False), [sink])
    assert result is None
    sink.assert_not_called()
    assert log_messages == []


def test_enabled_stamps_and_emits(record):
    sink = MagicMock()
    result = record_metrics(record, MetricsSettings(enabled=True, log_to_console=False), [sink])

    assert result is not None
    assert result.timestamp is not None
    assert result.url == record.url
    assert record.timestamp is None  # input left untouched
    sink.assert_called_once_with(result)


def test_console_sink(record, log_messages):
    record_metrics(record, MetricsSettings(enabled=True, log_to_console=True))

    assert len(log_messages) == 1
    line = log_messages[0].strip()
    assert line.startswith("[WebLattice Metrics] ")
    payload = json.loads(line.removeprefix("[WebLattice Metrics] "))
    assert payload["url"] == "/users?page=1"
    assert payload["status"] == 200
    assert payload["timestamp"] is not None


def test_console_sink_off(record, log_messages):
    record_metrics(record, MetricsSettings(enabled=True, log_to_console=False))
    assert log_messages == []


def test_failing_sink_does_not_block_others(record):
    broken = MagicMock(side_effect=RuntimeError("sink down"))
    healthy = MagicMock()

    result = record_metrics(
        record, MetricsSettings(enabled=True, log_to_console=False), [broken, healthy]
    )

    assert result is not None
    broken.assert_called_once()
    healthy.assert_called_once_with(result)
