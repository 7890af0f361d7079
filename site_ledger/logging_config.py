"""
Logging setup for Site Ledger.

All loggers live under the ``site_ledger`` namespace so the host application
can configure or silence them in one place.
"""

import logging
import sys
import threading
from typing import Any, Optional

_LOGGER_PREFIX = "site_ledger"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the site_ledger namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    level: int = logging.INFO,
    stream: Any = None,
    handler: Optional[logging.Handler] = None
) -> None:
    """Configure the site_ledger logger hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(logging.Formatter(_FORMAT))
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Remove installed handlers so configure_logging can run again."""
    global _configured
    with _lock:
        root_logger = logging.getLogger(_LOGGER_PREFIX)
        for h in list(root_logger.handlers):
            root_logger.removeHandler(h)
        root_logger.propagate = True
        root_logger.setLevel(logging.NOTSET)
        _configured = False
