"""
Logging Configuration

Configures standard Python logging for the service. Modules obtain their
loggers with ``logging.getLogger(__name__)``; the per-request access log
is written to ``link_service.access``.
"""

import logging
import logging.config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Apply a console logging configuration.

    Args:
        level: Root log level name (e.g. "INFO", "DEBUG")
    """
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    })
