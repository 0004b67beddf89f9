"""Tokenizer and recursive-descent parser for formula expressions.

Grammar::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/" | "%") unary)*
    unary      := ("+" | "-") unary | power
    power      := primary ("**" unary)?
    primary    := NUMBER | NAME "(" [expression ("," expression)*] ")"
                | VARIABLE | "(" expression ")"

A bare name must be a single uppercase letter (a series variable); any other
name is only valid directly before ``(``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from ..exceptions import InvalidFormulaSyntax

TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>\*\*|[+\-*/%(),])
    """,
    re.VERBOSE,
)

VARIABLE_PATTERN = re.compile(r"^[A-Z]$")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Node", ...]


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    while position < len(text):
        match = TOKEN_PATTERN.match(text, position)
        if match is None:
            raise InvalidFormulaSyntax(f"unexpected character {text[position]!r} at position {position}")
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(Token(kind, match.group(), position))
        position = match.end()
    tokens.append(Token("end", "", len(text)))
    return tokens


class Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def parse(self) -> Node:
        if self._peek().kind == "end":
            raise InvalidFormulaSyntax("formula is empty")
        node = self._expression()
        token = self._peek()
        if token.kind != "end":
            raise InvalidFormulaSyntax(f"unexpected {token.text!r} at position {token.position}")
        return node

    # ------------------------------------------------------------------
    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _accept(self, *ops: str) -> Optional[Token]:
        token = self._peek()
        if token.kind == "op" and token.text in ops:
            return self._advance()
        return None

    def _expect(self, op: str) -> Token:
        token = self._accept(op)
        if token is None:
            found = self._peek()
            where = "end of formula" if found.kind == "end" else f"{found.text!r} at position {found.position}"
            raise InvalidFormulaSyntax(f"expected {op!r} but found {where}")
        return token

    def _expression(self) -> Node:
        node = self._term()
        while True:
            token = self._accept("+", "-")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._term())

    def _term(self) -> Node:
        node = self._unary()
        while True:
            token = self._accept("*", "/", "%")
            if token is None:
                return node
            node = BinaryOp(token.text, node, self._unary())

    def _unary(self) -> Node:
        token = self._accept("+", "-")
        if token is not None:
            return UnaryOp(token.text, self._unary())
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._accept("**") is not None:
            return BinaryOp("**", base, self._unary())
        return base

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == "number":
            return Number(float(token.text))
        if token.kind == "name":
            if self._accept("(") is not None:
                return Call(token.text, self._arguments())
            if VARIABLE_PATTERN.match(token.text):
                return Variable(token.text)
            raise InvalidFormulaSyntax(
                f"unknown name {token.text!r} at position {token.position}; "
                "series variables are single uppercase letters"
            )
        if token.kind == "op" and token.text == "(":
            node = self._expression()
            self._expect(")")
            return node
        if token.kind == "end":
            raise InvalidFormulaSyntax("unexpected end of formula")
        raise InvalidFormulaSyntax(f"unexpected {token.text!r} at position {token.position}")

    def _arguments(self) -> Tuple[Node, ...]:
        args: List[Node] = []
        if self._accept(")") is not None:
            return tuple(args)
        args.append(self._expression())
        while self._accept(",") is not None:
            args.append(self._expression())
        self._expect(")")
        return tuple(args)


def parse(text: str) -> Node:
    if not isinstance(text, str):
        raise InvalidFormulaSyntax("formula must be a string")
    return Parser(text).parse()


def walk(node: Node) -> Iterator[Node]:
    yield node
    if isinstance(node, UnaryOp):
        yield from walk(node.operand)
    elif isinstance(node, BinaryOp):
        yield from walk(node.left)
        yield from walk(node.right)
    elif isinstance(node, Call):
        for arg in node.args:
            yield from walk(arg)


def referenced_variables(node: Node) -> List[str]:
    """Variable letters in order of first appearance."""
    seen: List[str] = []
    for item in walk(node):
        if isinstance(item, Variable) and item.name not in seen:
            seen.append(item.name)
    return seen


def called_functions(node: Node) -> List[str]:
    seen: List[str] = []
    for item in walk(node):
        if isinstance(item, Call) and item.name not in seen:
            seen.append(item.name)
    return seen


__all__ = [
    "Token",
    "Number",
    "Variable",
    "UnaryOp",
    "BinaryOp",
    "Call",
    "Node",
    "tokenize",
    "parse",
    "walk",
    "referenced_variables",
    "called_functions",
]
