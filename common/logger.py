"""
Logging setup shared by the controller stack.
All loggers live under the "quadctrl" hierarchy and share one stream handler.
"""

from __future__ import annotations

import logging
import os

_ROOT = "quadctrl"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(os.environ.get("QUADCTRL_LOG_LEVEL", "INFO").upper())
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. get_logger("controls") -> quadctrl.controls."""
    _configure_root()
    return logging.getLogger(f"{_ROOT}.{name}")
