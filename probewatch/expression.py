"""A small expression language for checking extracted values.

Numbers are floats, strings are quoted with ``'`` or ``"``, and a string
literal that reads as a time becomes its Unix timestamp. The operators, from
lowest to highest precedence, are ``?:``, ``||``, ``&&``, the comparisons
``== != < <= > >= =~ !~``, ``+ -``, ``* / %``, ``**`` and the prefixes
``! -``. Functions are supplied by the caller.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping

from .extract import try_parse_time


class ExpressionError(ValueError):
    """An expression could not be parsed or evaluated."""


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<num>\d+(?:\.\d*)?|\.\d+)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<bracket>\[[^\]]*\])
  | (?P<op>\*\*|==|!=|>=|<=|=~|!~|&&|\|\||[-+*/%<>!?:(),])
    """,
    re.VERBOSE,
)

_COMPARATORS = ("==", "!=", "<", "<=", ">", ">=", "=~", "!~")


def _read_string(text: str, pos: int) -> tuple[str, int]:
    quote = text[pos]
    pos += 1
    chars = []
    while pos < len(text):
        char = text[pos]
        if char == "\\" and pos + 1 < len(text):
            chars.append(text[pos + 1])
            pos += 2
            continue
        if char == quote:
            return "".join(chars), pos + 1
        chars.append(char)
        pos += 1
    raise ExpressionError("unclosed string literal")


def _tokenize(text: str) -> list[tuple[str, Any]]:
    tokens: list[tuple[str, Any]] = []
    pos = 0
    while pos < len(text):
        if text[pos] in "'\"":
            value, pos = _read_string(text, pos)
            try:
                tokens.append(("num", float(try_parse_time(value).timestamp())))
            except ValueError:
                tokens.append(("str", value))
            continue
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ExpressionError(f"invalid character {text[pos]!r} at {pos}")
        kind = match.lastgroup
        lexeme = match.group()
        pos = match.end()
        if kind == "ws":
            continue
        if kind == "num":
            tokens.append(("num", float(lexeme)))
        elif kind == "bracket":
            tokens.append(("ident", lexeme[1:-1]))
        else:
            tokens.append((kind, lexeme))
    return tokens


class _Parser:
    def __init__(self, tokens, functions):
        self.tokens = tokens
        self.functions = functions
        self.pos = 0

    def peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else (None, None)

    def take_op(self, *ops):
        kind, value = self.peek()
        if kind == "op" and value in ops:
            self.pos += 1
            return value
        return None

    def expect(self, op):
        if self.take_op(op) is None:
            raise ExpressionError(f"expected {op!r}")

    def parse(self):
        if not self.tokens:
            raise ExpressionError("empty expression")
        node = self.ternary()
        if self.pos != len(self.tokens):
            raise ExpressionError(f"unexpected token {self.peek()[1]!r}")
        return node

    def ternary(self):
        cond = self.logical_or()
        if self.take_op("?"):
            then = self.ternary()
            self.expect(":")
            return ("ternary", cond, then, self.ternary())
        return cond

    def _binary(self, ops, operand):
        node = operand()
        while (op := self.take_op(*ops)) is not None:
            node = ("bin", op, node, operand())
        return node

    def logical_or(self):
        return self._binary(("||",), self.logical_and)

    def logical_and(self):
        return self._binary(("&&",), self.comparison)

    def comparison(self):
        return self._binary(_COMPARATORS, self.additive)

    def additive(self):
        return self._binary(("+", "-"), self.multiplicative)

    def multiplicative(self):
        return self._binary(("*", "/", "%"), self.power)

    def power(self):
        base = self.unary()
        if self.take_op("**"):
            return ("bin", "**", base, self.power())
        return base

    def unary(self):
        op = self.take_op("!", "-")
        if op is not None:
            return ("not" if op == "!" else "neg", self.unary())
        return self.primary()

    def primary(self):
        kind, value = self.peek()
        if kind is None:
            raise ExpressionError("unexpected end of expression")
        self.pos += 1
        if kind in ("num", "str"):
            return ("const", value)
        if kind == "ident":
            if value == "true":
                return ("const", True)
            if value == "false":
                return ("const", False)
            if self.take_op("("):
                if value not in self.functions:
                    raise ExpressionError(f"No function '{value}' found")
                return ("call", value, self.arguments())
            return ("var", value)
        if kind == "op" and value == "(":
            node = self.ternary()
            self.expect(")")
            return node
        raise ExpressionError(f"unexpected token {value!r}")

    def arguments(self):
        args = []
        if self.take_op(")"):
            return args
        while True:
            args.append(self.ternary())
            if self.take_op(")"):
                return args
            self.expect(",")


def _normalize(value):
    if isinstance(value, bool) or isinstance(value, str) or value is None:
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, timedelta):
        return float((value // timedelta(microseconds=1)) * 1000)
    if isinstance(value, datetime):
        return float(value.timestamp())
    return value


def _is_number(value) -> bool:
    return isinstance(value, float)


def _as_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)


def _numbers(op, left, right):
    if not (_is_number(left) and _is_number(right)):
        raise ExpressionError(f"operator {op!r} needs numbers, got {left!r} and {right!r}")


def _divide(left, right):
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _power(left, right):
    try:
        return math.pow(left, right)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def _compare(op, left, right):
    if op in ("==", "!="):
        equal = type(left) is type(right) and left == right
        return equal if op == "==" else not equal
    if op in ("=~", "!~"):
        if not (isinstance(left, str) and isinstance(right, str)):
            raise ExpressionError(f"operator {op!r} needs strings")
        try:
            found = re.search(right, left) is not None
        except re.error as err:
            raise ExpressionError(f"invalid regex {right!r}: {err}") from err
        return found if op == "=~" else not found
    if not (
        (_is_number(left) and _is_number(right))
        or (isinstance(left, str) and isinstance(right, str))
    ):
        raise ExpressionError(f"cannot compare {left!r} {op} {right!r}")
    return {
        "<": left < right,
        "<=": left <= right,
        ">": left > right,
        ">=": left >= right,
    }[op]


class Expression:
    """A parsed expression that can be evaluated against parameters."""

    def __init__(self, text: str, functions: Mapping[str, Callable[..., Any]] | None = None):
        self.text = text
        self.functions = dict(functions or {})
        self._tree = _Parser(_tokenize(text), self.functions).parse()

    def evaluate(self, parameters):
        """Evaluate the expression with the given named parameters."""
        params = {name: _normalize(value) for name, value in (parameters or {}).items()}
        return self._eval(self._tree, params)

    def _eval(self, node, params):
        kind = node[0]
        if kind == "const":
            return node[1]
        if kind == "var":
            if node[1] not in params:
                raise ExpressionError(f"No parameter '{node[1]}' found.")
            return params[node[1]]
        if kind == "call":
            args = [self._eval(arg, params) for arg in node[2]]
            try:
                return _normalize(self.functions[node[1]](*args))
            except ExpressionError:
                raise
            except (ValueError, TypeError, IndexError) as err:
                raise ExpressionError(str(err)) from err
        if kind == "not":
            value = self._eval(node[1], params)
            if not isinstance(value, bool):
                raise ExpressionError(f"operator '!' needs a boolean, got {value!r}")
            return not value
        if kind == "neg":
            value = self._eval(node[1], params)
            if not _is_number(value):
                raise ExpressionError(f"operator '-' needs a number, got {value!r}")
            return -value
        if kind == "ternary":
            cond = self._eval(node[1], params)
            if not isinstance(cond, bool):
                raise ExpressionError(f"ternary condition must be boolean, got {cond!r}")
            return self._eval(node[2] if cond else node[3], params)
        return self._binary(node[1], node[2], node[3], params)

    def _binary(self, op, left_node, right_node, params):
        left = self._eval(left_node, params)
        if op in ("&&", "||"):
            if not isinstance(left, bool):
                raise ExpressionError(f"operator {op!r} needs booleans, got {left!r}")
            if (op == "&&" and not left) or (op == "||" and left):
                return left
            right = self._eval(right_node, params)
            if not isinstance(right, bool):
                raise ExpressionError(f"operator {op!r} needs booleans, got {right!r}")
            return right
        right = self._eval(right_node, params)
        if op in _COMPARATORS:
            return _compare(op, left, right)
        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            return _as_text(left) + _as_text(right)
        _numbers(op, left, right)
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            return _divide(left, right)
        if op == "%":
            return math.fmod(left, right) if right != 0 else math.nan
        return _power(left, right)