"""Conversion of DATE and DATE-TIME property values to datetimes.

Only the three forms used by RFC 5545 section 3.3.4 and 3.3.5 are
understood: a bare date, a UTC date-time and a local date-time, the
latter either floating or anchored by a TZID parameter.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .debug import logger
from .ical import Property

DATE_LAYOUT = "%Y%m%d"
DATE_TIME_LAYOUT_UTC = "%Y%m%dT%H%M%SZ"
DATE_TIME_LAYOUT_LOCALIZED = "%Y%m%dT%H%M%S"

# strptime accepts short and space-padded fields, so the shape is checked first
_LAYOUT_PATTERNS = {
    DATE_LAYOUT: re.compile(r"\d{8}", re.ASCII),
    DATE_TIME_LAYOUT_UTC: re.compile(r"\d{8}T\d{6}Z", re.ASCII),
    DATE_TIME_LAYOUT_LOCALIZED: re.compile(r"\d{8}T\d{6}", re.ASCII),
}


def load_location(name: str) -> tzinfo:
    """Resolve an IANA timezone name, falling back to UTC.

    Args:
        name: Timezone name, e.g. "Europe/Berlin"

    Returns:
        ZoneInfo for the name, or UTC if it cannot be resolved
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        logger.debug(f"unknown timezone {name!r}, using UTC: {e}")
        return UTC


def _parse_in_location(value: str, layout: str, location: tzinfo) -> datetime:
    if not _LAYOUT_PATTERNS[layout].fullmatch(value):
        raise ValueError(f"date {value!r} does not match layout {layout!r}")
    return datetime.strptime(value, layout).replace(tzinfo=location)


def parse_date(prop: Property, location: tzinfo) -> datetime:
    """Transform a DATE or DATE-TIME property into an aware datetime.

    Rules, in order:
    1. A value ending in "Z" is a UTC date-time.
    2. With a TZID parameter the value is a local date-time in that zone
       (UTC if the zone is unknown).
    3. An 8 character value is a date at midnight in location, with or
       without VALUE=DATE.
    4. Anything else is a local date-time in location.

    Args:
        prop: DTSTART, DTEND, DTSTAMP or similar property
        location: Zone for values that carry no zone information

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the value does not match the expected layout
    """
    value = prop.value
    if value.endswith("Z"):
        return _parse_in_location(value, DATE_TIME_LAYOUT_UTC, UTC)

    tzid = prop.params.get("TZID")
    if tzid is not None and tzid.values:
        return _parse_in_location(value, DATE_TIME_LAYOUT_LOCALIZED, load_location(tzid.values[0]))

    # Covers VALUE=DATE as well: a date value is always 8 characters
    if len(value) == 8:
        return _parse_in_location(value, DATE_LAYOUT, location)

    return _parse_in_location(value, DATE_TIME_LAYOUT_LOCALIZED, location)
