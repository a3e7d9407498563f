"""Exception types raised by lazyblocks components."""

from __future__ import annotations


class LazyBlocksError(Exception):
    """Base class for errors raised by lazyblocks."""


class UnsupportedMarkOptionError(LazyBlocksError, ValueError):
    """Raised when a caller requests a decoration option the engine cannot apply."""

    def __init__(self, option: str) -> None:
        super().__init__(f'option "{option}" is not supported by mark_text')
        self.option = option


class ParseError(LazyBlocksError, ValueError):
    """Raised by the parser and lexer for text that cannot form a tree."""

    def __init__(self, message: str, position=None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
