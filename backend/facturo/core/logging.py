"""Logging configuration for the Facturo API."""

import logging.config

from backend.facturo.core.settings import get_settings

_configured = False


def configure_logging() -> None:
    global _configured
    if _configured:
        return
    settings = get_settings()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "default"},
            },
            "loggers": {
                "backend.facturo": {"handlers": ["console"], "level": settings.log_level, "propagate": False},
            },
        }
    )
    _configured = True
