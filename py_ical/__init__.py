"""A Python library for parsing iCalendar data."""

from .config import ParserConfig
from .ical import Alarm, Calendar, Event, Param, Property
from .internal import ICalError, LexError, StructureError, ValidationError
from .parser import parse, parse_string, unfold

__version__ = "0.1.0"

__all__ = [
    "ParserConfig",
    "Alarm",
    "Calendar",
    "Event",
    "Param",
    "Property",
    "ICalError",
    "LexError",
    "StructureError",
    "ValidationError",
    "parse",
    "parse_string",
    "unfold",
]
