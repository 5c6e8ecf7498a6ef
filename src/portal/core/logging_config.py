# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging setup for the portal.

One console handler on the root logger; noisy third-party loggers are
reduced so request-level events stay readable.
"""

from __future__ import annotations

import logging
from typing import Optional

DETAILED_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

MODULE_LOG_LEVELS = {
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "uvicorn.access": "INFO",
}

_CONFIGURED = False


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    global _CONFIGURED
    level = (log_level or "INFO").upper()
    root = logging.getLogger()

    if not _CONFIGURED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        for module_name, module_level in MODULE_LOG_LEVELS.items():
            logging.getLogger(module_name).setLevel(module_level)
        _CONFIGURED = True

    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
