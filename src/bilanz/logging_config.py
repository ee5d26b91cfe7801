"""Logging setup for the bilanz logger hierarchy."""

import logging
import sys
from typing import Any, Optional

_LOGGER_PREFIX = "bilanz"

_STDLIB_KEYS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()) | {
    "message",
    "taskName",
}


class KeyValueFormatter(logging.Formatter):
    """Formats a record as ``level logger event key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [record.levelname, record.name, record.getMessage()]
        for key, value in vars(record).items():
            if key not in _STDLIB_KEYS:
                parts.append(f"{key}={value}")
        line = " ".join(str(p) for p in parts)
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: int | str = logging.WARNING, stream: Optional[Any] = None) -> None:
    """Attach a single stream handler to the bilanz logger (idempotent)."""
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(KeyValueFormatter())
    root_logger.addHandler(handler)
