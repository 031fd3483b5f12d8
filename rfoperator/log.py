"""Structured logging with fields, a shared level and a silent variant."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

TRACE = 5

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


class LoggerPanic(RuntimeError):
    """Raised after a message has been logged at panic level."""


class _FieldsFormatter(logging.Formatter):
    """Appends the record's fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = getattr(record, "fields", None) or {}
        if fields:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
            text = f"{text} {pairs}"
        return text


def _default_logger() -> logging.Logger:
    logger = logging.getLogger("rfoperator")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            _FieldsFormatter("time=%(asctime)s level=%(levelname)s msg=%(message)s")
        )
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def _render(msg: Any, args: tuple) -> str:
    return str(msg) % args if args else str(msg)


class Logger:
    """A logger carrying a set of fields; derived loggers share the level."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._logger = logger if logger is not None else _default_logger()
        self.fields: dict[str, Any] = dict(fields or {})

    @property
    def level(self) -> int:
        """The effective level of the underlying logger."""
        return self._logger.getEffectiveLevel()

    def _log(self, level: int, msg: Any, args: tuple) -> str:
        text = _render(msg, args)
        if self._logger.isEnabledFor(level):
            caller = sys._getframe(2)
            src = f"{Path(caller.f_code.co_filename).name}:{caller.f_lineno}"
            self._logger.log(
                level,
                text,
                extra={"fields": {**self.fields, "src": src}},
                stacklevel=3,
            )
        return text

    def debug(self, msg, *args) -> None:
        self._log(logging.DEBUG, msg, args)

    def info(self, msg, *args) -> None:
        self._log(logging.INFO, msg, args)

    def warning(self, msg, *args) -> None:
        self._log(logging.WARNING, msg, args)

    def error(self, msg, *args) -> None:
        self._log(logging.ERROR, msg, args)

    def fatal(self, msg, *args) -> None:
        """Log the message and exit with status 1."""
        self._log(logging.CRITICAL, msg, args)
        raise SystemExit(1)

    def panic(self, msg, *args) -> None:
        """Log the message and raise LoggerPanic."""
        text = self._log(logging.CRITICAL, msg, args)
        raise LoggerPanic(text)

    def with_field(self, key: str, value: Any) -> "Logger":
        return Logger(self._logger, {**self.fields, key: value})

    def with_fields(self, values: Mapping[str, Any]) -> "Logger":
        return Logger(self._logger, {**self.fields, **values})

    def set_level(self, level: str) -> None:
        """Set the shared level by name; raise ValueError for unknown names."""
        try:
            numeric = _LEVELS[str(level).lower()]
        except KeyError:
            raise ValueError(f"not a valid logging level: {level!r}") from None
        self._logger.setLevel(numeric)


class DummyLogger:
    """A logger that writes nothing and only counts what it discards.

    Fatal and panic messages are discarded as well: neither exits nor raises.
    """

    def __init__(self, fields: Optional[Mapping[str, Any]] = None) -> None:
        self.fields: dict[str, Any] = dict(fields or {})
        self.discarded = 0

    def _discard(self) -> None:
        self.discarded += 1

    def debug(self, msg, *args) -> None:
        self._discard()

    def info(self, msg, *args) -> None:
        self._discard()

    def warning(self, msg, *args) -> None:
        self._discard()

    def error(self, msg, *args) -> None:
        self._discard()

    def fatal(self, msg, *args) -> None:
        self._discard()

    def panic(self, msg, *args) -> None:
        self._discard()

    def with_field(self, key, value) -> "DummyLogger":
        return DummyLogger({**self.fields, key: value})

    def with_fields(self, values) -> "DummyLogger":
        return DummyLogger({**self.fields, **values})

    def set_level(self, level) -> None:
        pass


DUMMY = DummyLogger()

_BASE: Optional[Logger] = None


def base() -> Logger:
    """Return the process-wide base logger."""
    global _BASE
    if _BASE is None:
        _BASE = Logger()
    return _BASE


def with_field(key: str, value: Any) -> Logger:
    """Derive a logger from the base logger with one more field."""
    return base().with_field(key, value)


def set_level(level: str) -> None:
    """Set the level of the base logger."""
    base().set_level(level)