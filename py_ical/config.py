"""Parser configuration.

Defaults are read from the environment so a deployment can pin the zone
used for floating times without touching calling code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo

from dateutil import tz

from .dates import load_location

PY_ICAL_DEFAULT_TIMEZONE = os.getenv("PY_ICAL_DEFAULT_TIMEZONE")
PY_ICAL_TRACE_TOKENS = os.getenv("PY_ICAL_TRACE_TOKENS", "")


@dataclass
class ParserConfig:
    """Configuration for the iCalendar parser."""

    # IANA name of the zone for floating times and bare dates;
    # None means the host's local zone
    default_timezone: str | None = PY_ICAL_DEFAULT_TIMEZONE

    # Log every token handed from the lexer to the parser
    trace_tokens: bool = PY_ICAL_TRACE_TOKENS.lower() in ("1", "true", "yes")

    def default_location(self) -> tzinfo:
        """Zone used when neither the value nor the caller names one."""
        if self.default_timezone:
            return load_location(self.default_timezone)
        return tz.tzlocal()
