"""Entrypoint: python -m coach_messaging"""
from __future__ import annotations

import uvicorn

LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "correlation_id": {
            "()": "coach_messaging.api.middleware.correlation_id.CorrelationIdFilter",
        },
    },
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "filters": ["correlation_id"],
        },
    },
    "root": {"handlers": ["default"], "level": "INFO"},
}


def main() -> None:
    uvicorn.run(
        "coach_messaging.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level="info",
        log_config=LOG_CONFIG,
    )


if __name__ == "__main__":
    main()
