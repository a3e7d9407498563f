"""Tree model: node/tree datatypes, the s-expression parser, and traversal."""

from __future__ import annotations

from ..errors import ParseError
from .navigation import node_after, node_before
from .parser import BLANK_TEXT, SExpressionParser, Token, tokenize
from .types import EDITABLE_TYPES, NODE_TYPES, Node, Tree

__all__ = [
    "Node",
    "Tree",
    "EDITABLE_TYPES",
    "NODE_TYPES",
    "ParseError",
    "SExpressionParser",
    "Token",
    "tokenize",
    "BLANK_TEXT",
    "node_after",
    "node_before",
]
