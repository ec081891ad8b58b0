"""Logging configuration and helpers."""

import logging
import re
import typing
from enum import StrEnum

from src import settings

# Matches the literal in `... PASSWORD = 'secret'`; doubled quotes are escaped quotes.
_PASSWORD_LITERAL = re.compile(r"(PASSWORD\s*=\s*)'(?:[^']|'')*'", re.IGNORECASE)


class ConsoleFormat(StrEnum):
    """ANSI codes used by the colour formatter.

    <https://en.wikipedia.org/wiki/ANSI_escape_code#Select_Graphic_Rendition_parameters>
    """

    RESET = "\033[0m"
    BLACK = "\033[30m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    LIGHT_GREY = "\033[37m"
    HIGHLIGHT_RED = "\033[41m"
    BOLD = "\033[1m"


class RedactPasswordsFilter(logging.Filter):
    """Mask CQL password literals before a record reaches any handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _PASSWORD_LITERAL.sub(r"\1'***'", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class DefaultConsoleFormatter(logging.Formatter):
    """Plain console output: time, logger, level, message."""

    fmt = "{asctime} - {name} - {levelname} - {message}"
    style = "{"

    def _template(self, *_: typing.Any, **__: typing.Any) -> str:
        return self.fmt

    def format(self, record: logging.LogRecord) -> str:
        formatter = logging.Formatter(
            self._template(record),
            style=self.style,  # type: ignore[arg-type]
            validate=True,
        )
        return formatter.format(record)


class ColourConsoleFormatter(DefaultConsoleFormatter):
    """Console output coloured by level."""

    COLOURS = {
        logging.DEBUG: ConsoleFormat.LIGHT_GREY,
        logging.INFO: ConsoleFormat.BLUE,
        logging.WARNING: ConsoleFormat.YELLOW,
        logging.ERROR: ConsoleFormat.RED,
        logging.CRITICAL: ConsoleFormat.BOLD + ConsoleFormat.HIGHLIGHT_RED + ConsoleFormat.BLACK,
    }

    def _template(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelno, ConsoleFormat.RESET)
        return f"{colour}{self.fmt}{ConsoleFormat.RESET}"


def build_handler(
    level: str = settings.LOG_LEVEL, colour: bool = settings.LOG_COLOUR_ENABLED
) -> logging.Handler:
    """Stream handler with password redaction and the configured formatter."""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(RedactPasswordsFilter())
    handler.setFormatter(ColourConsoleFormatter() if colour else DefaultConsoleFormatter())
    return handler


def get_logger(component: str) -> logging.Logger:
    """
    Child of the reconciler logger, e.g. ``cassandra-reconciler.keyspace``.

    Logger filters do not run for records propagated from children, so each
    child carries the redaction filter itself.
    """
    logger = LOGGER.getChild(component)
    if _REDACT_PASSWORDS not in logger.filters:
        logger.addFilter(_REDACT_PASSWORDS)
    return logger


_REDACT_PASSWORDS = RedactPasswordsFilter()

LOGGER = logging.getLogger(settings.LOGGER_NAME)
LOGGER.setLevel(settings.LOG_LEVEL)
LOGGER.addFilter(_REDACT_PASSWORDS)
LOGGER.addHandler(build_handler())
