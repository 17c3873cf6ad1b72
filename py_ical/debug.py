"""Debug logging utilities for the iCalendar parser."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ical import Calendar
    from .internal.lexer import Item

logger = logging.getLogger("py_ical")
lexer_logger = logging.getLogger("py_ical.lexer")


def log_token(item: Item) -> None:
    """Log a token handed from the lexer to the parser.

    Args:
        item: Token returned by the lexer
    """
    lexer_logger.debug(f"{item.pos} -- {item}")


def log_calendar(calendar: Calendar) -> None:
    """Log a one-line summary of a parsed calendar.

    Args:
        calendar: Successfully parsed calendar
    """
    alarms = sum(len(event.alarms) for event in calendar.events)
    logger.debug(
        f"parsed calendar {calendar.prodid!r}: {len(calendar.properties)} properties, "
        f"{len(calendar.events)} events, {alarms} alarms"
    )


def setup_debug_logging() -> None:
    """Configure debug logging for the parser and the lexer."""
    logger.setLevel(logging.DEBUG)

    # Create console handler with custom formatter
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)

    # Simple format - just the logger name and the message
    formatter = logging.Formatter("[%(name)s] %(message)s")
    handler.setFormatter(formatter)

    # The lexer logger propagates into this handler
    logger.addHandler(handler)

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False
