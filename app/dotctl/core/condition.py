"""Condition expressions over platform facts.

Grammar::

    expr      := term ( ('OR'|'or') term )*
    term      := factor ( ('AND'|'and') factor )*
    factor    := '(' expr ')' | predicate
    predicate := field op value
    field     := os | distro | hostname | arch
    op        := '==' | '!=' | '=~'
    value     := quoted-string | bare-token

Expressions are parsed into a small AST once (parsing is cached) and then
evaluated against Platform facts. Evaluation is pure: the same expression
and facts always produce the same verdict.

Example:
    >>> evaluate("os == linux AND (distro =~ '^ubu' OR arch == arm64)", facts)
    True
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Protocol

from dotctl.core.errors import ConditionError

FIELDS = frozenset({"os", "distro", "hostname", "arch"})
OPERATORS = frozenset({"==", "!=", "=~"})

_AND_WORDS = frozenset({"AND", "and"})
_OR_WORDS = frozenset({"OR", "or"})


class Facts(Protocol):
    """Anything that can answer a condition field lookup."""

    def fact(self, field: str) -> str: ...


class TokenType(Enum):
    """Lexical token categories."""

    LPAREN = "("
    RPAREN = ")"
    OPERATOR = "op"
    WORD = "word"
    STRING = "string"


@dataclass(frozen=True, slots=True)
class Token:
    """Single lexical token.

    Attributes:
        type: Token category.
        value: Token text (quotes stripped for STRING tokens).
        position: Offset of the token in the source expression.
    """

    type: TokenType
    value: str
    position: int


@dataclass(frozen=True, slots=True)
class Predicate:
    """Leaf node: ``field op value``."""

    field: str
    operator: str
    value: str
    pattern: re.Pattern[str] | None = None

    def evaluate(self, facts: Facts) -> bool:
        actual = facts.fact(self.field)
        if self.operator == "==":
            return actual == self.value
        if self.operator == "!=":
            return actual != self.value
        if self.pattern is None:
            raise ConditionError(f"operator {self.operator!r} needs a compiled pattern")
        return self.pattern.search(actual) is not None


@dataclass(frozen=True, slots=True)
class AllOf:
    """Conjunction node."""

    operands: tuple["Node", ...]

    def evaluate(self, facts: Facts) -> bool:
        return all(operand.evaluate(facts) for operand in self.operands)


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Disjunction node."""

    operands: tuple["Node", ...]

    def evaluate(self, facts: Facts) -> bool:
        return any(operand.evaluate(facts) for operand in self.operands)


Node = Predicate | AllOf | AnyOf


def tokenize(expression: str) -> list[Token]:
    """Split an expression into tokens.

    Whitespace separates tokens, quoted runs (single or double quotes) are
    kept intact, parentheses are always separate tokens and the operators
    ``==``, ``!=`` and ``=~`` are recognized even without surrounding spaces.

    Raises:
        ConditionError: On an unterminated quote.
    """
    tokens: list[Token] = []
    i = 0
    length = len(expression)

    while i < length:
        char = expression[i]

        if char.isspace():
            i += 1
            continue

        if char == "(":
            tokens.append(Token(TokenType.LPAREN, char, i))
            i += 1
            continue

        if char == ")":
            tokens.append(Token(TokenType.RPAREN, char, i))
            i += 1
            continue

        if char in ("'", '"'):
            end = expression.find(char, i + 1)
            if end == -1:
                raise ConditionError(
                    f"unterminated quote at position {i} in condition: {expression}",
                    subject=expression,
                )
            tokens.append(Token(TokenType.STRING, expression[i + 1 : end], i))
            i = end + 1
            continue

        if expression[i : i + 2] in OPERATORS:
            tokens.append(Token(TokenType.OPERATOR, expression[i : i + 2], i))
            i += 2
            continue

        start = i
        while i < length:
            char = expression[i]
            if char.isspace() or char in "()'\"" or expression[i : i + 2] in OPERATORS:
                break
            i += 1
        tokens.append(Token(TokenType.WORD, expression[start:i], start))

    return tokens


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, expression: str, tokens: list[Token]) -> None:
        self._expression = expression
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Node:
        if not self._tokens:
            raise self._error("empty condition expression")
        node = self._expr()
        if self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            if token.type == TokenType.RPAREN:
                raise self._error(
                    f"unbalanced parentheses: unexpected ')' at position {token.position}"
                )
            raise self._error(f"unexpected token {token.value!r} at position {token.position}")
        return node

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _next(self, expected: str) -> Token:
        token = self._peek()
        if token is None:
            raise self._error(f"unexpected end of condition: expected {expected}")
        self._pos += 1
        return token

    def _is_keyword(self, words: frozenset[str]) -> bool:
        token = self._peek()
        return token is not None and token.type == TokenType.WORD and token.value in words

    def _expr(self) -> Node:
        operands = [self._term()]
        while self._is_keyword(_OR_WORDS):
            self._pos += 1
            operands.append(self._term())
        return operands[0] if len(operands) == 1 else AnyOf(tuple(operands))

    def _term(self) -> Node:
        operands = [self._factor()]
        while self._is_keyword(_AND_WORDS):
            self._pos += 1
            operands.append(self._factor())
        return operands[0] if len(operands) == 1 else AllOf(tuple(operands))

    def _factor(self) -> Node:
        token = self._peek()
        if token is not None and token.type == TokenType.LPAREN:
            self._pos += 1
            node = self._expr()
            closing = self._peek()
            if closing is None or closing.type != TokenType.RPAREN:
                raise self._error("unbalanced parentheses: missing ')'")
            self._pos += 1
            return node
        return self._predicate()

    def _predicate(self) -> Predicate:
        field_token = self._next("a field name")
        if field_token.type != TokenType.WORD or field_token.value not in FIELDS:
            raise self._error(
                f"unknown field: {field_token.value}",
                hint=f"Supported fields: {', '.join(sorted(FIELDS))}.",
            )

        op_token = self._next("an operator")
        if op_token.type != TokenType.OPERATOR:
            raise self._error(
                f"unknown operator: {op_token.value}",
                hint="Supported operators: ==, !=, =~.",
            )

        value_token = self._next("a value")
        if value_token.type not in (TokenType.WORD, TokenType.STRING):
            raise self._error(f"expected a value after {op_token.value!r}")

        pattern = None
        if op_token.value == "=~":
            try:
                pattern = re.compile(value_token.value)
            except re.error as e:
                raise self._error(f"invalid regular expression {value_token.value!r}: {e}") from e

        return Predicate(field_token.value, op_token.value, value_token.value, pattern)

    def _error(self, message: str, hint: str | None = None) -> ConditionError:
        return ConditionError(
            f"{message} (in condition: {self._expression})",
            subject=self._expression,
            hint=hint,
        )


@lru_cache(maxsize=256)
def parse(expression: str) -> Node:
    """Parse a condition expression into an AST.

    Args:
        expression: Condition source text.

    Returns:
        Root AST node.

    Raises:
        ConditionError: If the expression is empty or malformed.
    """
    return _Parser(expression, tokenize(expression)).parse()


def evaluate(expression: str, facts: Facts) -> bool:
    """Evaluate a condition expression against platform facts.

    Args:
        expression: Condition source text.
        facts: Platform facts (anything with a ``fact(field)`` method).

    Returns:
        True if the condition holds.

    Raises:
        ConditionError: If the expression is malformed.
    """
    return parse(expression).evaluate(facts)


def validate(expression: str) -> None:
    """Raise ConditionError if ``expression`` does not parse."""
    parse(expression)
