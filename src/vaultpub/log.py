"""Logging setup: one stream handler on the package logger, extras rendered as key=value"""

import logging


LOGGER_NAME = "vaultpub"
FORMAT = "%(levelname)s %(name)s: %(message)s"

_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


class KeyValueFormatter(logging.Formatter):
    """Append fields passed through `extra=` to the message, sorted by key."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        return line


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the package logger; a handler from an earlier call is replaced."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for old in [h for h in logger.handlers if isinstance(h.formatter, KeyValueFormatter)]:
        logger.removeHandler(old)
    handler = logging.StreamHandler()
    handler.setFormatter(KeyValueFormatter(FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    return logger
