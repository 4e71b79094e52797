"""Logging for ``sms_ledger``.

Modules log under the ``sms_ledger`` logger via :func:`get_logger` and stay
silent until an entrypoint calls :func:`configure_logging`; the CLI does so
once per process. ``SMS_LEDGER_LOG_LEVEL`` picks the level.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER = "sms_ledger"
LEVEL_ENV = "SMS_LEDGER_LOG_LEVEL"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    # Unknown names come back as the string "Level <NAME>".
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: int | str | None = None, *, stream: IO[str] = sys.stderr) -> None:
    """Attach one stream handler to the ``sms_ledger`` logger; later calls are no-ops."""

    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER)
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.NullHandler)]
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
