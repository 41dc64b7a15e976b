"""Shared logging utilities for FastAPI applications."""

import logging

import common.settings

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'


class HealthCheckFilter(logging.Filter):
    """Filter out health check requests from uvicorn access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False to suppress health check log entries."""
        return '/health' not in record.getMessage()


def configure_logging(level: str | None = None) -> None:
    """Set up application log output and quiet health checks in uvicorn access logs.

    The root handler is only installed once; later calls just adjust the level.
    """
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level or common.settings.LOG_LEVEL)

    access_logger = logging.getLogger('uvicorn.access')
    if not any(isinstance(f, HealthCheckFilter) for f in access_logger.filters):
        access_logger.addFilter(HealthCheckFilter())
