"""Custom filters for uvicorn access logging."""

import logging


class ExcludeMetricsFilter(logging.Filter):
    """
    Logging filter to exclude monitoring endpoint requests from access logs.

    Health checks and Prometheus scrapes hit the relay every few seconds;
    their access log lines are dropped. The excluded paths come from the
    LOG_EXCLUDED_PATHS setting.
    """

    def __init__(self, excluded_paths: list[str] | None = None) -> None:
        super().__init__()
        if excluded_paths is None:
            # Lazy import: uvicorn may build its logging config first
            from frame_relay.settings import app_settings

            excluded_paths = app_settings.LOG_EXCLUDED_PATHS
        self.excluded_paths = tuple(excluded_paths)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(
            f" {path} " in message or f" {path}?" in message
            for path in self.excluded_paths
        )


def install_access_log_filter() -> None:
    """Attach ExcludeMetricsFilter to uvicorn's access logger."""
    access_logger = logging.getLogger("uvicorn.access")
    if not any(
        isinstance(f, ExcludeMetricsFilter) for f in access_logger.filters
    ):
        access_logger.addFilter(ExcludeMetricsFilter())
