"""Error types shared by the lexer and the parser."""

from __future__ import annotations


class ICalError(Exception):
    """Base class for everything raised while parsing iCalendar data."""


class LexError(ICalError):
    """Lexical error reported by the scanner.

    The scanner stops at the first lexical error, so there is never more
    than one of these per input.
    """

    def __init__(self, message: str, pos: int):
        self.message = message
        self.pos = pos  # Byte offset in the unfolded input
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"lex error at byte {self.pos}: {self.message}"


class StructureError(ICalError):
    """A token other than the one the grammar requires was found."""

    def __init__(self, found: str, expected: str):
        self.found = found
        self.expected = expected
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"found {self.found}, expected {self.expected}"


class ValidationError(ICalError):
    """A component closed without satisfying its property requirements."""

    def __init__(self, component: str, message: str):
        self.component = component
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.component}: {self.message}"
