from __future__ import annotations

import logging.config

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logging_config(level: str = "INFO", fmt: str = DEFAULT_LOG_FORMAT) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": fmt,
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "squadops": {
                "level": level,
                "handlers": ["default"],
                "propagate": False,
            },
        },
    }


def configure_logging(level: str = "INFO", fmt: str = DEFAULT_LOG_FORMAT) -> None:
    logging.config.dictConfig(get_logging_config(level, fmt))
