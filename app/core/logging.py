import sys
from logging.config import dictConfig
from app.core.config import APP_ENV, LOG_LEVEL


def setup_logging():
    root_level = LOG_LEVEL or ("DEBUG" if APP_ENV == "development" else "INFO")

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                # One line per HTTP request, see request_logging_middleware
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | %(request_id)s | "
                        "%(actor)s | %(method)s %(path)s | "
                        "%(status_code)s | %(process_time_ms)sms"
                    ),
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                },
            },
            "loggers": {
                "access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                # Stage transitions, conversions and refusals
                "app.services": {"level": root_level},
                "app.core.scheduler": {"level": "INFO"},
                "sqlalchemy.engine": {"level": "WARNING"},
                "apscheduler": {"level": "WARNING" if APP_ENV == "production" else "INFO"},
            },
            "root": {
                "level": root_level,
                "handlers": ["console"],
            },
        }
    )
