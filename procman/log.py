"""Console logging shared by all procman modules."""

from __future__ import annotations

import logging
import sys

_LOGGER_NAME = "procman"


class _StderrHandler(logging.Handler):
    """A handler that always writes to the current ``sys.stderr``."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = sys.stderr
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def get_logger() -> logging.Logger:
    """Return the procman logger, writing human-readable lines to stderr."""
    logger = logging.getLogger(_LOGGER_NAME)
    if not any(isinstance(h, _StderrHandler) for h in logger.handlers):
        handler = _StderrHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname).3s %(message)s", datefmt="%I:%M%p"
            )
        )
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger