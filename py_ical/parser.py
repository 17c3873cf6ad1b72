"""Recursive descent parser turning iCalendar text into a Calendar.

The parser pulls tokens from the lexer one at a time, builds the
Calendar/Event/Alarm tree for the scope that is currently open and
validates each component as its END delimiter is read. The first error
aborts the whole parse; no partial calendar is returned.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from enum import IntEnum
from typing import BinaryIO, TextIO

from .config import ParserConfig
from .dates import parse_date
from .debug import log_calendar, log_token, logger
from .ical import Alarm, Calendar, Event, Param, Property, has_property
from .internal.internal import LexError, StructureError, ValidationError
from .internal.lexer import Item, ItemType, Lexer, lex


class Scope(IntEnum):
    """Block whose properties are currently being collected."""

    CALENDAR = 0
    EVENT = 1
    ALARM = 2


# Properties counted during event validation; each may occur at most once
EVENT_PROPERTIES = ("UID", "DTSTAMP", "DTSTART", "DTEND", "DURATION", "SUMMARY", "DESCRIPTION")
ALARM_PROPERTIES = ("ACTION", "TRIGGER")


def unfold(text: str) -> str:
    """Join folded content lines (CRLF followed by a single space)."""
    return text.replace("\r\n ", "")


def parse(
    r: TextIO | BinaryIO,
    location: tzinfo | None = None,
    config: ParserConfig | None = None,
) -> Calendar:
    """Parse a whole iCalendar resource from a reader.

    It's up to the caller to close the reader. Binary readers are decoded
    as UTF-8.

    Args:
        r: Text or binary file-like object
        location: Zone for floating times and bare dates (see ParserConfig)
        config: Parser configuration (uses default if None)

    Returns:
        Validated Calendar

    Raises:
        ICalError: If the input is not a valid calendar
    """
    data = r.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return parse_string(data, location, config)


def parse_string(
    text: str,
    location: tzinfo | None = None,
    config: ParserConfig | None = None,
) -> Calendar:
    """Parse iCalendar text held in memory.

    If location is not given it defaults to the configured timezone, and
    failing that to the host's local zone.
    """
    config = config or ParserConfig()
    if location is None:
        location = config.default_location()
    parser = Parser(lex("ical", unfold(text)), location, config)
    return parser.parse()


class Parser:
    """Parser state for a single calendar."""

    def __init__(self, lexer: Lexer, location: tzinfo, config: ParserConfig | None = None) -> None:
        self.lex = lexer
        self.location = location
        self.config = config or ParserConfig()
        self.scope = Scope.CALENDAR
        self.calendar = Calendar()
        self.event: Event | None = None
        self.alarm: Alarm | None = None
        self._peeked: Item | None = None

    # Token access -----------------------------------------------------------

    def next(self) -> Item:
        """Return the next token, raising LexError for an error token."""
        if self._peeked is not None:
            item, self._peeked = self._peeked, None
            return item
        item = self.lex.next_item()
        if self.config.trace_tokens:
            log_token(item)
        if item.typ == ItemType.ERROR:
            raise LexError(item.val, item.pos)
        return item

    def backup(self, item: Item) -> None:
        """Push a token back so the next call to next() returns it."""
        self._peeked = item

    def expect_line_end(self) -> None:
        if (item := self.next()).typ != ItemType.LINE_END:
            raise StructureError(str(item), "CRLF")

    # Scope ------------------------------------------------------------------

    def enter_scope(self, scope: Scope) -> None:
        logger.debug(f"entering {scope.name} scope")
        self.scope = scope

    def leave_scope(self) -> None:
        self.scope = Scope(self.scope - 1)
        logger.debug(f"back in {self.scope.name} scope")

    # Grammar ----------------------------------------------------------------

    def parse(self) -> Calendar:
        """Parse the whole token stream into a validated Calendar."""
        if (item := self.next()).typ != ItemType.BEGIN_VCALENDAR:
            raise StructureError(str(item), "BEGIN:VCALENDAR")
        self.expect_line_end()
        while not self.scan_content_line():
            pass
        log_calendar(self.calendar)
        return self.calendar

    def scan_content_line(self) -> bool:
        """Parse one content line, handling any delimiters before it.

        Returns:
            True once END:VCALENDAR has been read
        """
        name = self.next()
        while name.typ.is_delimiter:
            if self.scan_delimiter(name):
                return True
            name = self.next()
        if name.typ != ItemType.COMPONENT or not name.val:
            raise StructureError(str(name), 'a "component" token')

        prop = Property(name=name.val)
        self.scan_params(prop)
        if (item := self.next()).typ != ItemType.COLON:
            raise StructureError(str(item), '":"')
        value = self.next()
        if value.typ != ItemType.VALUE:
            raise StructureError(str(value), "a value")
        prop.value = value.val
        self.expect_line_end()

        if self.scope == Scope.CALENDAR:
            self.calendar.properties.append(prop)
        elif self.scope == Scope.EVENT:
            self.event.properties.append(prop)
        else:
            self.alarm.properties.append(prop)
        return False

    def scan_delimiter(self, delimiter: Item) -> bool:
        """Switch scope for a BEGIN/END delimiter and validate what it closes.

        Returns:
            True for END:VCALENDAR, which ends parsing
        """
        typ = delimiter.typ
        if typ == ItemType.BEGIN_VEVENT:
            self.require_scope(delimiter, Scope.CALENDAR)
            self.validate_calendar(self.calendar)
            self.event = Event()
            self.enter_scope(Scope.EVENT)
        elif typ == ItemType.END_VEVENT:
            self.require_scope(delimiter, Scope.EVENT)
            self.validate_event(self.event)
            self.calendar.events.append(self.event)
            self.event = None
            self.leave_scope()
        elif typ == ItemType.BEGIN_VALARM:
            self.require_scope(delimiter, Scope.EVENT)
            self.alarm = Alarm()
            self.enter_scope(Scope.ALARM)
        elif typ == ItemType.END_VALARM:
            self.require_scope(delimiter, Scope.ALARM)
            self.validate_alarm(self.alarm)
            self.event.alarms.append(self.alarm)
            self.alarm = None
            self.leave_scope()
        elif typ == ItemType.END_VCALENDAR:
            self.require_scope(delimiter, Scope.CALENDAR)
            self.validate_calendar(self.calendar)
            return True
        else:
            raise StructureError(str(delimiter), "a content line")
        self.expect_line_end()
        return False

    def require_scope(self, delimiter: Item, scope: Scope) -> None:
        """Reject a delimiter that is not legal in the current scope."""
        if self.scope == scope:
            return
        if self.scope == Scope.ALARM:
            raise StructureError(str(delimiter), "END:VALARM")
        if self.scope == Scope.EVENT:
            raise StructureError(str(delimiter), "END:VEVENT")
        raise StructureError(str(delimiter), "BEGIN:VEVENT or END:VCALENDAR")

    def scan_params(self, prop: Property) -> None:
        """Parse the ;name=value[,value] groups of a content line."""
        while True:
            item = self.next()
            if item.typ != ItemType.SEMICOLON:
                self.backup(item)
                return
            name = self.next()
            if name.typ != ItemType.PARAM_NAME:
                raise StructureError(str(name), "a parameter name")
            if (item := self.next()).typ != ItemType.EQUAL:
                raise StructureError(str(item), '"="')
            param = Param()
            self.scan_values(param)
            prop.params[name.val] = param

    def scan_values(self, param: Param) -> None:
        """Parse a list of one or more comma-separated parameter values."""
        while True:
            item = self.next()
            if item.typ != ItemType.PARAM_VALUE:
                raise StructureError(str(item), "a parameter value")
            param.values.append(item.val)
            item = self.next()
            if item.typ != ItemType.COMMA:
                self.backup(item)
                return

    # Validation -------------------------------------------------------------

    def validate_calendar(self, c: Calendar) -> None:
        """Check PRODID/VERSION and copy the calendar-level fields."""
        counts = {"PRODID": 0, "VERSION": 0}
        for prop in c.properties:
            if prop.name == "PRODID":
                c.prodid = prop.value
                counts["PRODID"] += 1
            elif prop.name == "VERSION":
                c.version = prop.value
                counts["VERSION"] += 1
            elif prop.name == "CALSCALE":
                c.calscale = prop.value
            elif prop.name == "METHOD":
                c.method = prop.value
        for name, count in counts.items():
            if count == 0:
                raise ValidationError("VCALENDAR", f'missing required property "{name}"')
            if count > 1:
                raise ValidationError("VCALENDAR", f'"{name}" property occurs more than once')

    def validate_event(self, v: Event) -> None:
        """Check the required and unique properties of an event."""
        counts = dict.fromkeys(EVENT_PROPERTIES, 0)
        for prop in v.properties:
            if prop.name not in counts:
                continue
            counts[prop.name] += 1
            if prop.name == "UID":
                v.uid = prop.value
            elif prop.name == "DTSTAMP":
                v.timestamp = self._parse_date(prop)
            elif prop.name == "DTSTART":
                v.start_date = self._parse_date(prop)
            elif prop.name == "DTEND":
                if has_property("DURATION", v.properties):
                    raise ValidationError("VEVENT", 'cannot have both "DTEND" and "DURATION"')
                v.end_date = self._parse_date(prop)
            elif prop.name == "DURATION":
                if has_property("DTEND", v.properties):
                    raise ValidationError("VEVENT", 'cannot have both "DTEND" and "DURATION"')
            elif prop.name == "SUMMARY":
                v.summary = prop.value
            elif prop.name == "DESCRIPTION":
                v.description = prop.value

        # A METHOD (iTIP) calendar may omit DTSTAMP
        if not self.calendar.method and v.timestamp is None:
            raise ValidationError("VEVENT", 'missing required property "DTSTAMP"')
        if not v.uid:
            raise ValidationError("VEVENT", 'missing required property "UID"')
        if v.start_date is None:
            raise ValidationError("VEVENT", 'missing required property "DTSTART"')
        for name, count in counts.items():
            if count > 1:
                raise ValidationError("VEVENT", f'"{name}" property occurs more than once')
        if not has_property("DTEND", v.properties):
            v.end_date = v.start_date + timedelta(hours=24)

    def validate_alarm(self, a: Alarm) -> None:
        """Check that ACTION and TRIGGER occur exactly once."""
        counts = dict.fromkeys(ALARM_PROPERTIES, 0)
        for prop in a.properties:
            if prop.name == "ACTION":
                a.action = prop.value
                counts["ACTION"] += 1
            elif prop.name == "TRIGGER":
                a.trigger = prop.value
                counts["TRIGGER"] += 1
        for name, count in counts.items():
            if count < 1:
                raise ValidationError("VALARM", f'missing required property "{name}"')
            if count > 1:
                raise ValidationError("VALARM", f'"{name}" property occurs more than once')

    def _parse_date(self, prop: Property) -> datetime | None:
        # TODO: Report malformed dates as validation errors instead of treating them as absent
        try:
            return parse_date(prop, self.location)
        except ValueError as e:
            logger.debug(f"ignoring malformed {prop.name} value {prop.value!r}: {e}")
            return None
