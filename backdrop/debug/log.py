"""
Default logging setup for runners and demos.

Library modules only ever call `logging.getLogger(__name__)`; configuring
handlers is left to whoever owns the process.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_default_logging(level: int | str = "INFO") -> None:
    """Configure the root logger once. No-op if it already has handlers."""
    if isinstance(level, str):
        lvl = getattr(logging, level.upper(), logging.INFO)
    else:
        lvl = int(level)

    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(level=lvl, format=LOG_FORMAT)


__all__ = ["setup_default_logging"]
