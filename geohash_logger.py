"""
structlog wiring for the geohash modules.

Importing a module here never configures logging; modules only ask for a
logger. Scripts and host applications call configure_logging() once if they
want the library's events rendered.
"""
import logging
import sys

import structlog
from structlog.types import Processor

from geohash_settings import settings


def configure_logging(level: str = None, fmt: str = None) -> structlog.BoundLogger:
    """
    Route structlog events through the standard library logger.

    Args:
        level: Log level name, GEOHASH_LOG_LEVEL when omitted
        fmt: "json" or "console", GEOHASH_LOG_FORMAT when omitted
    """
    level = (level or settings.log_level).upper()
    fmt = fmt or settings.log_format

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if fmt == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger("geohash")


def get_logger(name: str = None) -> structlog.BoundLogger:
    return structlog.get_logger(name) if name else structlog.get_logger()
