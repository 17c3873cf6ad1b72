"""iCalendar document types.

A parsed document is a tree: the Calendar owns its top-level properties
and its events, each Event owns its properties and alarms. iCalendar is
defined in RFC 5545.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Param:
    """Property parameter with one or more comma-separated values."""

    values: list[str] = field(default_factory=list)


@dataclass
class Property:
    """A content line: name, parameters and raw value."""

    name: str = ""
    value: str = ""
    params: dict[str, Param] = field(default_factory=dict)


@dataclass
class Alarm:
    """VALARM component."""

    action: str = ""
    trigger: str = ""
    properties: list[Property] = field(default_factory=list)


@dataclass
class Event:
    """VEVENT component.

    Timestamps are None when the property is absent or its value could
    not be parsed.
    """

    uid: str = ""
    timestamp: datetime | None = None  # DTSTAMP
    start_date: datetime | None = None  # DTSTART
    end_date: datetime | None = None  # DTEND, or DTSTART + 24h
    summary: str = ""
    description: str = ""
    properties: list[Property] = field(default_factory=list)
    alarms: list[Alarm] = field(default_factory=list)


@dataclass
class Calendar:
    """VCALENDAR object."""

    prodid: str = ""
    version: str = ""
    calscale: str = "GREGORIAN"
    method: str = ""
    properties: list[Property] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)


def has_property(name: str, properties: list[Property]) -> bool:
    """Check if a component has a property with the given name."""
    return any(prop.name == name for prop in properties)
