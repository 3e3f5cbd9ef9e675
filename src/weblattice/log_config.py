# weblattice/log_config.py
"""Logging configuration for the weblattice library using Loguru.

Every module logs through the `logger` re-exported here. Metric records are
logged with ``extra["metrics"]`` set, so `configure_logging` can send them to
their own sink as bare JSON lines while pipeline and navigation messages keep
the usual format.
"""

import sys

from loguru import logger

__all__ = ["configure_logging", "is_metrics_record", "logger"]

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
METRICS_FORMAT = "{message}"


def is_metrics_record(record) -> bool:
    """Loguru filter matching the lines written by the metrics console sink."""
    return bool(record["extra"].get("metrics"))


def configure_logging(level: str = "INFO", sink=sys.stderr, *, metrics_sink=None):
    """
    Configures Loguru logger for the client.

    Removes existing handlers and adds one for ``sink``. When ``metrics_sink``
    is given, metric lines go only to that sink, formatted as the bare
    ``[WebLattice Metrics] {...}`` message so they can be collected as JSON.

    Args:
        level: The minimum logging level (e.g., "DEBUG", "INFO", "WARNING").
        sink: The output sink (e.g., sys.stderr, "weblattice.log").
        metrics_sink: Optional separate sink for metric lines. Metric lines
            are logged at INFO and are dropped when ``level`` is above it.
    """
    level = level.upper()
    logger.remove()
    logger.add(
        sink,
        level=level,
        format=LOG_FORMAT,
        filter=None if metrics_sink is None else (lambda record: not is_metrics_record(record)),
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=False,
    )
    if metrics_sink is not None:
        logger.add(metrics_sink, level=level, format=METRICS_FORMAT, filter=is_metrics_record)
    logger.debug(
        f"WebLattice logging configured with level={level}"
        f"{'' if metrics_sink is None else ', metrics routed to a separate sink'}"
    )
