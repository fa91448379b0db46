import sys
import logging
import logging.config

from config import cfg


def setup_logging():
    """ console output, plus an append-only error log with timestamps """
    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": sys.stdout,
            },
            "error_log": {
                "class": "logging.FileHandler",
                "level": "ERROR",
                "formatter": "standard",
                "filename": cfg.error_log,
                "mode": "a",
                "encoding": "utf-8",
                "delay": True,
            },
        },
        "loggers": {
            "chan": {
                "handlers": ["console", "error_log"],
                "level": log_level,
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(logging_config)
