# quoting/core/logging_config.py
import logging
import sys

import structlog


def setup_logging(level: str = "INFO") -> None:
    """
    Configure structlog + stdlib logging.
    Logs go to stdout as JSON, one event per line.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Global logger, import it anywhere
logger = structlog.get_logger("quoting")
