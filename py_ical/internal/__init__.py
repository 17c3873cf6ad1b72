"""Low-level helpers for the iCalendar lexer and parser."""

from .internal import ICalError, LexError, StructureError, ValidationError
from .lexer import DELIMITERS, Item, ItemType, Lexer, lex

__all__ = [
    "ICalError",
    "LexError",
    "StructureError",
    "ValidationError",
    "DELIMITERS",
    "Item",
    "ItemType",
    "Lexer",
    "lex",
]
