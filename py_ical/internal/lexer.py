"""Lexical scanner for unfolded iCalendar text.

The scanner is a state machine over the content-line grammar
(RFC 5545 section 3.1). Each state is a generator method: it yields the
items it produces and returns the next state, or None once scanning is
over. Pulling an item from the lexer resumes the machine only until that
item is ready, so the parser never runs ahead of what it has asked for.
"""

from __future__ import annotations

import json
import unicodedata
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass
from enum import Enum

from ..debug import lexer_logger


class ItemType(Enum):
    """Kinds of items produced by the scanner."""

    # Special items
    ERROR = "error"
    EOF = "eof"
    LINE_END = "line end"

    # Properties
    COMPONENT = "component"
    PARAM_NAME = "parameter name"
    PARAM_VALUE = "parameter value"
    VALUE = "value"

    # Punctuation
    COLON = ":"
    SEMICOLON = ";"
    EQUAL = "="
    COMMA = ","

    # Structural delimiters
    BEGIN_VCALENDAR = "BEGIN:VCALENDAR"
    END_VCALENDAR = "END:VCALENDAR"
    BEGIN_VEVENT = "BEGIN:VEVENT"
    END_VEVENT = "END:VEVENT"
    BEGIN_VALARM = "BEGIN:VALARM"
    END_VALARM = "END:VALARM"

    @property
    def is_delimiter(self) -> bool:
        """Whether this kind opens or closes a calendar, event or alarm block."""
        return self in _DELIMITER_TYPES


# Fixed literals recognized at the start of a line, checked before the
# generic name scan.
DELIMITERS: dict[str, ItemType] = {
    "BEGIN:VCALENDAR": ItemType.BEGIN_VCALENDAR,
    "END:VCALENDAR": ItemType.END_VCALENDAR,
    "BEGIN:VEVENT": ItemType.BEGIN_VEVENT,
    "END:VEVENT": ItemType.END_VEVENT,
    "BEGIN:VALARM": ItemType.BEGIN_VALARM,
    "END:VALARM": ItemType.END_VALARM,
}

_DELIMITER_TYPES = frozenset(DELIMITERS.values())

CRLF = "\r\n"
EOF = ""


@dataclass(frozen=True)
class Item:
    """A token or text string returned from the scanner."""

    typ: ItemType
    pos: int  # Byte offset of the item in the input
    val: str

    def __str__(self) -> str:
        if self.typ == ItemType.EOF:
            return "EOF"
        if self.typ == ItemType.ERROR:
            return self.val
        if self.typ.is_delimiter:
            return f"<{self.val}>"
        return json.dumps(self.val, ensure_ascii=False)


StateFn = Callable[[], Generator[Item, None, "StateFn | None"]]


class Lexer:
    """Scanner state for a single input string.

    Iterating a Lexer yields its items in input order. The stream ends
    after an EOF item or an ERROR item, whichever comes first.
    """

    def __init__(self, name: str, input: str) -> None:
        self.name = name  # Used for error reporting
        self.input = input
        self.start = 0  # Start index of the current item
        self.pos = 0  # Current index in the input
        self.width = 0  # Byte width of the last character read
        self.start_offset = 0  # Byte offset matching start
        self.offset = 0  # Byte offset matching pos
        self.last_pos = 0  # Position of the most recent item returned
        self._items = self._run()

    def __iter__(self) -> Iterator[Item]:
        return self

    def __next__(self) -> Item:
        item = next(self._items)
        self.last_pos = item.pos
        return item

    def next_item(self) -> Item:
        """Return the next item, or an EOF item once the scanner has halted."""
        try:
            return next(self)
        except StopIteration:
            return Item(ItemType.EOF, self.offset, "")

    def _run(self) -> Iterator[Item]:
        state: StateFn | None = self._lex_component
        while state is not None:
            state = yield from state()

    # Character access -------------------------------------------------------

    def _next(self) -> str:
        """Consume and return the next character, or EOF."""
        if self.pos >= len(self.input):
            self.width = 0
            return EOF
        r = self.input[self.pos]
        self.width = len(r.encode("utf-8", "surrogatepass"))
        self.pos += 1
        self.offset += self.width
        return r

    def _backup(self) -> None:
        """Step back one character. Only valid once per call of _next."""
        if self.width:
            self.pos -= 1
            self.offset -= self.width

    def _peek(self) -> str:
        r = self._next()
        self._backup()
        return r

    def _skip(self, literal: str) -> None:
        # literals are ASCII
        self.pos += len(literal)
        self.offset += len(literal)

    def _ignore(self) -> None:
        self.start = self.pos
        self.start_offset = self.offset

    def _emit(self, typ: ItemType) -> Item:
        item = Item(typ, self.start_offset, self.input[self.start : self.pos])
        self.start = self.pos
        self.start_offset = self.offset
        return item

    def _errorf(self, format_str: str, *args: object) -> Item:
        message = format_str % args if args else format_str
        lexer_logger.debug(f"{self.name}: {message} at byte {self.start_offset}")
        return Item(ItemType.ERROR, self.start_offset, message)

    # States -----------------------------------------------------------------

    def _lex_component(self) -> Generator[Item, None, StateFn | None]:
        """Scan the name at the start of a content line."""
        for literal, typ in DELIMITERS.items():
            if self.input.startswith(literal, self.pos):
                self._skip(literal)
                yield self._emit(typ)
                return self._lex_new_line
        while is_name(self._next()):
            pass
        self._backup()
        # An empty name still moves on; the content line decides what follows.
        yield self._emit(ItemType.COMPONENT)
        return self._lex_content_line

    def _lex_new_line(self) -> Generator[Item, None, StateFn | None]:
        if self._peek() == EOF:
            return None
        if not self.input.startswith(CRLF, self.pos):
            yield self._errorf('unable to find end of line "CRLF", got %s', describe(self._peek()))
            return None
        self._skip(CRLF)
        yield self._emit(ItemType.LINE_END)
        if self._peek() == EOF:
            yield self._emit(ItemType.EOF)
            return None
        return self._lex_component

    def _lex_content_line(self) -> Generator[Item, None, StateFn | None]:
        r = self._next()
        if r == ";":
            yield self._emit(ItemType.SEMICOLON)
            return self._lex_param_name
        if r == ":":
            yield self._emit(ItemType.COLON)
            return self._lex_value
        if r == ",":
            yield self._emit(ItemType.COMMA)
            return self._lex_param_value
        yield self._errorf("unrecognized character in content line: %s", describe(r))
        return None

    def _lex_param_name(self) -> Generator[Item, None, StateFn | None]:
        while is_name(self._next()):
            pass
        self._backup()
        yield self._emit(ItemType.PARAM_NAME)
        r = self._next()
        if r == "=":
            yield self._emit(ItemType.EQUAL)
            return self._lex_param_value
        yield self._errorf('missing "=" after parameter name, got %s', describe(r))
        return None

    def _lex_param_value(self) -> Generator[Item, None, StateFn | None]:
        if self._next() == '"':
            self._ignore()
            while is_qsafe_char(self._next()):
                pass
            self._backup()
            yield self._emit(ItemType.PARAM_VALUE)
            if self._next() != '"':
                yield self._errorf('missing closing " for parameter value')
                return None
            self._ignore()
        else:
            self._backup()
            while is_safe_char(self._next()):
                pass
            self._backup()
            yield self._emit(ItemType.PARAM_VALUE)
        return self._lex_content_line

    def _lex_value(self) -> Generator[Item, None, StateFn | None]:
        while is_value_char(self._next()):
            pass
        self._backup()
        yield self._emit(ItemType.VALUE)
        return self._lex_new_line


def lex(name: str, input: str) -> Lexer:
    """Create a new scanner for already unfolded input."""
    return Lexer(name, input)


# Character classes ------------------------------------------------------------


def is_control(r: str) -> bool:
    return unicodedata.category(r) == "Cc"


def is_name(r: str) -> bool:
    if r == EOF:
        return False
    category = unicodedata.category(r)
    return category[0] == "L" or category == "Nd" or r == "-"


def is_qsafe_char(r: str) -> bool:
    return r != EOF and not is_control(r) and r != '"'


def is_safe_char(r: str) -> bool:
    return r != EOF and not is_control(r) and r not in '";:,'


def is_value_char(r: str) -> bool:
    if r == "\t":
        return True
    return r != EOF and not is_control(r) and unicodedata.category(r) != "Cs"


def describe(r: str) -> str:
    """Render a character for error messages, e.g. U+003B ';'."""
    if r == EOF:
        return "EOF"
    return f"U+{ord(r):04X} {r!r}"
