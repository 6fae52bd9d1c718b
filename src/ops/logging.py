"""
Logging setup for the CLI host.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

# Libraries that log every inference or request at INFO.
NOISY_LOGGERS = ("ultralytics", "uvicorn.access")


def setup_logging(log_path: str, log_level: str, quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.insert(0, logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
