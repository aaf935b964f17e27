"""Shared logger that writes plain messages to standard output."""

from __future__ import annotations

import logging
import sys

LOG_TAG = "WsAudioStream"


class _StdoutHandler(logging.Handler):
    """Write each record as one line to whatever ``sys.stdout`` currently is."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            sys.stdout.write(self.format(record) + "\n")
            sys.stdout.flush()
        except Exception:  # noqa: BLE001 - logging must never raise
            self.handleError(record)


def get_logger() -> logging.Logger:
    """Return the application logger, configuring it on first use."""
    logger = logging.getLogger(LOG_TAG)
    if not any(isinstance(h, _StdoutHandler) for h in logger.handlers):
        handler = _StdoutHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
    return logger