"""Structured logging configuration using structlog."""

import logging
import sys

import structlog


def add_service_name(service: str) -> structlog.types.Processor:
    """Processor stamping every event with the emitting entry point."""

    def processor(
        logger: object, method_name: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def setup_logging(
    log_level: str = "INFO", json_output: bool = False, service: str = "planquota"
) -> None:
    """Configure structlog for one planquota entry point.

    Request-scoped values (request_id, tenant_id) bound through
    ``structlog.contextvars`` are merged into every event.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_name(service),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    if json_output or not sys.stderr.isatty():
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    level = getattr(logging, log_level.upper(), logging.INFO)
    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # SQL echo is controlled by Settings.debug; keep the driver loggers quiet otherwise
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("sqlalchemy.engine").setLevel(max(level, logging.WARNING))
