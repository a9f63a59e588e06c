import logging
import sys

import structlog


def get_log_renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    # Pretty printing for local development
    return structlog.dev.ConsoleRenderer(colors=False, sort_keys=False)


def configure_logging(level: str = "INFO", log_format: str = "console"):
    """Set up structlog on top of stdlib logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            get_log_renderer(log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]  # Replace any existing handlers
    root_logger.setLevel(level)


# Business event names
class Events:
    API_REQUEST = "api.request"
    TOKEN_FETCHED = "paypal.token.fetched"
    TOKEN_FAILED = "paypal.token.failed"
    PROCESSOR_CALL = "paypal.call"
    PROCESSOR_FAILED = "paypal.call.failed"
    RECORD_WRITTEN = "transaction.recorded"
    RECORD_MISSING = "transaction.missing"
    RECORD_FAILED = "transaction.record_failed"
    REQUEST_FAILED = "request.failed"
