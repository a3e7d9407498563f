"""S-expression parser and lexer producing block trees.

Brackets build ``expression`` nodes; atoms and strings are ``literal``
nodes; the placeholder ``...`` is a ``blank``; ``;`` line comments are
``comment`` nodes. Whitespace is never a node, so the text between nodes is
left exactly as written.
"""

from __future__ import annotations

import bisect
import itertools
import re
from collections.abc import Iterator
from dataclasses import dataclass

from ..buffer.positions import Position
from ..errors import ParseError
from .types import Node, Tree

BLANK_TEXT = "..."
CLOSERS = {"(": ")", "[": "]"}

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<comment>;[^\n]*)
    | (?P<open>[(\[])
    | (?P<close>[)\]])
    | (?P<string>"(?:[^"\\]|\\.)*")
    | (?P<unterminated>".*)
    | (?P<atom>[^\s()\[\]";]+)
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int


def tokenize(text: str) -> Iterator[Token]:
    """Yield tokens covering ``text`` end to end."""
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        assert kind is not None
        yield Token(kind, match.group(), match.start(), match.end())


class _LineIndex:
    """Offset-to-position conversion for one source text."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        for match in re.finditer("\n", text):
            self._starts.append(match.end())

    def position(self, offset: int) -> Position:
        line = bisect.bisect_right(self._starts, offset) - 1
        return Position(line, offset - self._starts[line])


class SExpressionParser:
    """Parser/lexer pair used by the block engine.

    Node ids come from a per-parser counter, so an id from a discarded tree
    never resolves in a newer one.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)

    def _new_node(self, node_type: str, start: Position, end: Position) -> Node:
        return Node(id=str(next(self._ids)), type=node_type, start=start, end=end)

    def parse(self, text: str) -> Tree:
        """Parse ``text`` into a tree, raising ``ParseError`` on unbalanced input."""
        lines = _LineIndex(text)
        roots: list[Node] = []
        stack: list[tuple[Node, str]] = []

        def attach(node: Node) -> None:
            if stack:
                stack[-1][0].children.append(node)
            else:
                roots.append(node)

        for token in tokenize(text):
            start = lines.position(token.start)
            end = lines.position(token.end)
            if token.kind == "ws":
                continue
            if token.kind == "unterminated":
                raise ParseError("unterminated string", start)
            if token.kind == "open":
                stack.append((self._new_node("expression", start, start), token.text))
                continue
            if token.kind == "close":
                if not stack:
                    raise ParseError(f"unexpected {token.text!r}", start)
                node, opener = stack.pop()
                if CLOSERS[opener] != token.text:
                    raise ParseError(f"expected {CLOSERS[opener]!r} but found {token.text!r}", start)
                node.end = end
                attach(node)
                continue
            if token.kind == "comment":
                attach(self._new_node("comment", start, end))
                continue
            node_type = "blank" if token.text == BLANK_TEXT else "literal"
            attach(self._new_node(node_type, start, end))

        if stack:
            node, opener = stack[-1]
            raise ParseError(f"missing {CLOSERS[opener]!r}", node.start)
        return Tree.from_roots(roots)

    def lex(self, fragment: str) -> None:
        """Validate text about to be spliced into the buffer.

        The fragment must tokenize cleanly, keep its brackets balanced, and
        carry no comment (a comment would swallow the rest of its line).
        """
        lines = _LineIndex(fragment)
        openers: list[tuple[str, int]] = []
        for token in tokenize(fragment):
            if token.kind == "unterminated":
                raise ParseError("unterminated string", lines.position(token.start))
            if token.kind == "comment":
                raise ParseError("comments cannot be inserted inline", lines.position(token.start))
            if token.kind == "open":
                openers.append((token.text, token.start))
            elif token.kind == "close":
                if not openers:
                    raise ParseError(f"unexpected {token.text!r}", lines.position(token.start))
                opener, _offset = openers.pop()
                if CLOSERS[opener] != token.text:
                    raise ParseError(
                        f"expected {CLOSERS[opener]!r} but found {token.text!r}",
                        lines.position(token.start),
                    )
        if openers:
            opener, offset = openers[-1]
            raise ParseError(f"missing {CLOSERS[opener]!r}", lines.position(offset))

    def error_message(self, exc: BaseException) -> str:
        """Format a lexer/parser error for display; raises for foreign errors."""
        if not isinstance(exc, ParseError):
            raise TypeError(f"cannot describe {type(exc).__name__}")
        position = exc.position
        if position is None:
            return exc.message
        return f"{exc.message} (line {position.line + 1}, column {position.column + 1})"
