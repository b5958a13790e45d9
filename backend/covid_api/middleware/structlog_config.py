"""
Structlog setup for the API, the scheduler thread and the scripts.

Every event carries the service name and environment so API and
automation lines can be told apart once shipped off the box.
"""
import logging
import sys

import structlog

from ..config import settings

SERVICE_NAME = "kosovo-covid-api"


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def configure(log_level: str = "INFO", json_logs: bool | None = None) -> None:
    """Configure structlog and route stdlib logging (uvicorn, apscheduler) through it.

    json_logs=None picks the console renderer on a TTY and JSON otherwise.
    """
    if json_logs is None:
        json_logs = not sys.stdout.isatty()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
            ],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Job outcomes are logged by AutomationService itself
    for name, level in (("apscheduler", logging.WARNING), ("uvicorn.access", logging.WARNING)):
        logging.getLogger(name).setLevel(level)
