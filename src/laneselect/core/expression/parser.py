"""Parser for ``${...}`` predicate expressions.

Grammar, lowest precedence first::

    or        := and (("or" | "||") and)*
    and       := equality (("and" | "&&") equality)*
    equality  := relation (("==" | "!=" | "eq" | "ne") relation)*
    relation  := sum (("<" | ">" | "<=" | ">=" | "lt" | "gt" | "le" | "ge") sum)*
    sum       := product (("+" | "-") product)*
    product   := unary (("*" | "/" | "%" | "div" | "mod") unary)*
    unary     := ("not" | "!" | "-" | "empty") unary | primary
    primary   := literal | call | name | "(" or ")"
    call      := name "(" [or ("," or)*] ")"

Names may carry a namespace prefix (``record:value``).
"""
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional, Union

from ..errors import ExpressionSyntaxError
from .base import EXPRESSION_CLOSE, EXPRESSION_OPEN, is_delimited

_TOKEN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+\.\d*|\.\d+|\d+)
  | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
  | (?P<name>[A-Za-z_]\w*(?::[A-Za-z_]\w*)?)
  | (?P<op>\|\||&&|==|!=|<=|>=|[<>+\-*/%!(),])
    """,
    re.VERBOSE,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}

# Keyword spellings mapped onto their symbolic operator.
_KEYWORD_OPS = {
    "or": "||",
    "and": "&&",
    "not": "!",
    "eq": "==",
    "ne": "!=",
    "lt": "<",
    "gt": ">",
    "le": "<=",
    "ge": ">=",
    "div": "/",
    "mod": "%",
    "empty": "empty",
}

_LITERALS = {"true": True, "false": False, "null": None}

# Limits keep parsing and evaluation well inside the interpreter recursion limit.
MAX_NESTING = 50
MAX_DEPTH = 100

_BINARY_LEVELS = (
    ("||",),
    ("&&",),
    ("==", "!="),
    ("<", ">", "<=", ">="),
    ("+", "-"),
    ("*", "/", "%"),
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True)
class Literal:
    value: Any
    position: int
    depth: int = field(default=1, compare=False)


@dataclass(frozen=True)
class Name:
    name: str
    position: int
    depth: int = field(default=1, compare=False)


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"
    position: int
    depth: int = field(default=1, compare=False)


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"
    position: int
    depth: int = field(default=1, compare=False)


@dataclass(frozen=True)
class Call:
    function: str
    args: tuple["Node", ...]
    position: int
    depth: int = field(default=1, compare=False)


Node = Union[Literal, Name, Unary, Binary, Call]


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group()), body)


def tokenize(source: str) -> list[Token]:
    """Split an expression body into tokens.

    Raises:
        ExpressionSyntaxError: On characters that start no token
    """
    tokens = []
    position = 0
    while position < len(source):
        match = _TOKEN.match(source, position)
        if match is None:
            raise ExpressionSyntaxError(f"Unexpected character {source[position]!r}", position)
        kind = match.lastgroup
        text = match.group()
        if kind == "name" and text in _KEYWORD_OPS:
            tokens.append(Token("op", _KEYWORD_OPS[text], position))
        elif kind != "ws":
            tokens.append(Token(kind, text, position))
        position = match.end()
    tokens.append(Token("end", "", position))
    return tokens


class _Parser:
    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.index = 0
        self.nesting = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def accept(self, *ops: str) -> Optional[Token]:
        if self.current.kind == "op" and self.current.text in ops:
            return self.advance()
        return None

    def expect(self, op: str) -> Token:
        token = self.accept(op)
        if token is None:
            raise ExpressionSyntaxError(
                f"Expected '{op}' but found {self._describe(self.current)}", self.current.position
            )
        return token

    def _nest(self, position: int) -> None:
        self.nesting += 1
        if self.nesting > MAX_NESTING:
            raise ExpressionSyntaxError("Expression nests too deeply", position)

    @staticmethod
    def _depth(position: int, *children: Node) -> int:
        depth = 1 + max((child.depth for child in children), default=0)
        if depth > MAX_DEPTH:
            raise ExpressionSyntaxError("Expression is too long", position)
        return depth

    @staticmethod
    def _describe(token: Token) -> str:
        return "end of expression" if token.kind == "end" else repr(token.text)

    def parse(self) -> Node:
        node = self.binary(0)
        if self.current.kind != "end":
            raise ExpressionSyntaxError(
                f"Unexpected {self._describe(self.current)}", self.current.position
            )
        return node

    def binary(self, level: int) -> Node:
        if level == len(_BINARY_LEVELS):
            return self.unary()
        node = self.binary(level + 1)
        while True:
            token = self.accept(*_BINARY_LEVELS[level])
            if token is None:
                return node
            right = self.binary(level + 1)
            node = Binary(
                token.text, node, right, token.position, self._depth(token.position, node, right)
            )

    def unary(self) -> Node:
        token = self.accept("!", "-", "empty")
        if token is not None:
            self._nest(token.position)
            try:
                operand = self.unary()
            finally:
                self.nesting -= 1
            return Unary(token.text, operand, token.position, self._depth(token.position, operand))
        return self.primary()

    def primary(self) -> Node:
        token = self.advance()
        if token.kind == "number":
            value = float(token.text) if "." in token.text else int(token.text)
            return Literal(value, token.position)
        if token.kind == "string":
            return Literal(_unquote(token.text), token.position)
        if token.kind == "name":
            if token.text in _LITERALS:
                return Literal(_LITERALS[token.text], token.position)
            if self.accept("("):
                self._nest(token.position)
                try:
                    args = self.arguments()
                finally:
                    self.nesting -= 1
                return Call(token.text, args, token.position, self._depth(token.position, *args))
            if ":" in token.text:
                raise ExpressionSyntaxError(
                    f"Function '{token.text}' must be called", token.position
                )
            return Name(token.text, token.position)
        if token.kind == "op" and token.text == "(":
            self._nest(token.position)
            try:
                node = self.binary(0)
            finally:
                self.nesting -= 1
            self.expect(")")
            return node
        raise ExpressionSyntaxError(f"Unexpected {self._describe(token)}", token.position)

    def arguments(self) -> tuple[Node, ...]:
        if self.accept(")"):
            return ()
        args = [self.binary(0)]
        while self.accept(","):
            args.append(self.binary(0))
        self.expect(")")
        return tuple(args)


def strip_delimiters(expression: str) -> str:
    """Return the body of a ``${...}`` expression."""
    if not is_delimited(expression):
        raise ExpressionSyntaxError(
            f"Expression must be enclosed in '{EXPRESSION_OPEN}' and '{EXPRESSION_CLOSE}'"
        )
    return expression[len(EXPRESSION_OPEN):-len(EXPRESSION_CLOSE)]


@lru_cache(maxsize=1024)
def parse_expression(expression: str) -> Node:
    """Parse a delimited expression into an immutable syntax tree.

    Results are cached per expression string.

    Raises:
        ExpressionSyntaxError: If the expression is not well formed
    """
    body = strip_delimiters(expression)
    if not body.strip():
        raise ExpressionSyntaxError("Expression is empty")
    return _Parser(tokenize(body)).parse()
