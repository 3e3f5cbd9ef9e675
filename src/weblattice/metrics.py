"""Metrics recording for completed calls.

`record_metrics` is deliberately stateless: it stamps the record and hands it
to the console sink and any extra sinks. Aggregation or shipping to a metrics
backend belongs in a custom `MetricsSink`.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from .config import MetricsSettings
from .constants import METRICS_LOG_PREFIX
from .log_config import logger
from .models import MetricRecord
from .types import MetricsSink


def console_sink(record: MetricRecord) -> None:
    """Write one metric record as a single log line."""
    logger.bind(metrics=True).info(f"{METRICS_LOG_PREFIX} {record.model_dump_json()}")


def record_metrics(
    record: MetricRecord,
    settings: MetricsSettings,
    sinks: Sequence[MetricsSink] = (),
) -> MetricRecord | None:
    """Emit a metric record if metrics are enabled.

    Args:
        record: The record built by the pipeline for one call.
        settings: Metrics section of the client configuration, read at call time.
        sinks: Additional sinks receiving the stamped record.

    Returns:
        MetricRecord | None: The stamped record, or None when metrics are disabled.
    """
    if not settings.enabled:
        return None

    stamped = record.model_copy(update={"timestamp": datetime.now(UTC)})

    if settings.log_to_console:
        console_sink(stamped)

    for sink in sinks:
        try:
            sink(stamped)
        except Exception as e:
            logger.error(
                f"Error executing metrics sink {getattr(sink, '__name__', str(sink))}: {e}"
            )
    return stamped
