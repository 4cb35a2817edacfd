from __future__ import annotations

import logging
import sys

from innovative_sphere.config import DEFAULT_LOG_FORMAT

NOISY_LOGGERS = ("urllib3", "uvicorn.access")


def configure_logging(level: str = "INFO", log_format: str = DEFAULT_LOG_FORMAT) -> None:
    """Install a single stream handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)
