"""Guard expression mini-language for translation rules.

A guard decides whether a translation applies to the arguments of a call::

    _1 == 1
    _1 > 1 && _1 < 5
    lc(_2) eq 'female' && defined(_1)
    substr(_1,0,2) eq 'oz'

An expression is a conjunction of atoms joined by ``&&``. Each atom is
either a comparison ``<operand> <op> <operand>`` or a single operand whose
value is tested for truth. Operands are numbers, quoted strings, positional
argument references ``_N`` (1-based) or calls to the functions in
``FUNCTIONS``. There is no ``||``, no grouping parentheses and no
precedence: atoms are evaluated left to right.

Numeric operators (``== != < > <= >=``) coerce both sides to numbers,
``eq`` and ``ne`` compare text. An argument that was not supplied reads as
``0`` numerically and ``""`` as text.
"""
from __future__ import annotations

import functools
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from makephrase.errors import ExpressionError

logger = logging.getLogger("makephrase.expression")

NUMERIC_OPERATORS = ("==", "!=", "<=", ">=", "<", ">")
STRING_OPERATORS = ("eq", "ne")

_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
_NUMERIC_PREFIX_RE = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
_IS_NUMBER_RE = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE]-?\d+)?$")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ARG_RE = re.compile(r"_(\d+)$")

MAX_NESTING = 32


# ── Value helpers ──────────────────────────────────────────────────

def is_number(value: Any) -> bool:
    """Return True if *value* is a number or a string that looks like one."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not (isinstance(value, float) and math.isnan(value))
    if value is None:
        return False
    text = str(value)
    if not text or text == "-":
        return False
    return bool(_IS_NUMBER_RE.match(text))


def to_number(value: Any) -> Union[int, float]:
    """Coerce a value to a number the way a loosely typed comparison would.

    Strings contribute their leading numeric prefix (``"3 apples"`` is 3);
    anything without one, including an undefined argument, is 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    match = _NUMERIC_PREFIX_RE.match(str(value))
    if not match:
        return 0
    text = match.group(0).strip()
    try:
        return int(text)
    except ValueError:
        return float(text)


def to_text(value: Any) -> str:
    """Stringify a value; integral floats lose their fractional part."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return str(value)


def is_true(value: Any) -> bool:
    """Truth test for a bare operand: undefined, "", "0" and zero are false."""
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value)
    return text not in ("", "0")


def _substr(text: Any, offset: Any, length: Any = None) -> str:
    s = to_text(text)
    start = int(to_number(offset))
    size = len(s)
    if start < 0:
        start = max(size + start, 0)
    if start > size:
        return ""
    if length is None:
        return s[start:]
    count = int(to_number(length))
    end = size + count if count < 0 else start + count
    return s[start:max(end, start)]


def _right(text: Any, count: Any) -> str:
    s = to_text(text)
    n = int(to_number(count))
    return s[-n:] if n > 0 else ""


@dataclass(frozen=True)
class GuardFunction:
    """A function callable from a guard expression."""

    name: str
    min_args: int
    max_args: int
    impl: Callable[..., Any]


FUNCTIONS: dict[str, GuardFunction] = {
    fn.name: fn
    for fn in (
        GuardFunction("defined", 1, 1, lambda x: 0 if x is None else 1),
        GuardFunction("length", 1, 1, lambda x: len(to_text(x))),
        GuardFunction("int", 1, 1, lambda x: int(to_number(x))),
        GuardFunction("abs", 1, 1, lambda n: abs(to_number(n))),
        GuardFunction("lc", 1, 1, lambda s: to_text(s).lower()),
        GuardFunction("uc", 1, 1, lambda s: to_text(s).upper()),
        GuardFunction("left", 2, 2, lambda s, n: to_text(s)[:max(int(to_number(n)), 0)]),
        GuardFunction("right", 2, 2, _right),
        GuardFunction("substr", 2, 3, _substr),
    )
}


# ── Tokenizer ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    kind: str  # number, string, arg, name, op, and, lparen, rparen, comma
    value: Any
    pos: int


def tokenize(expression: str) -> list[Token]:
    """Split a guard expression into tokens.

    ``&&`` inside a quoted string is part of the string, not a separator.

    Raises:
        ExpressionError: On an unterminated string or an unexpected character.
    """
    tokens: list[Token] = []
    i = 0
    n = len(expression)
    while i < n:
        ch = expression[i]
        if ch.isspace():
            i += 1
            continue
        if ch in ("'", '"'):
            start = i
            i += 1
            chars: list[str] = []
            while i < n and expression[i] != ch:
                if expression[i] == "\\" and i + 1 < n:
                    i += 1
                chars.append(expression[i])
                i += 1
            if i >= n:
                raise ExpressionError("Unterminated string", expression, start)
            i += 1
            tokens.append(Token("string", "".join(chars), start))
            continue
        if expression.startswith("&&", i):
            tokens.append(Token("and", "&&", i))
            i += 2
            continue
        two = expression[i:i + 2]
        if two in ("==", "!=", "<=", ">="):
            tokens.append(Token("op", two, i))
            i += 2
            continue
        if ch in "<>":
            tokens.append(Token("op", ch, i))
            i += 1
            continue
        if ch == "(":
            tokens.append(Token("lparen", ch, i))
            i += 1
            continue
        if ch == ")":
            tokens.append(Token("rparen", ch, i))
            i += 1
            continue
        if ch == ",":
            tokens.append(Token("comma", ch, i))
            i += 1
            continue
        number = _NUMBER_RE.match(expression, i)
        if number and (ch.isdigit() or ch in ".-"):
            text = number.group(0)
            value: Union[int, float]
            try:
                value = int(text)
            except ValueError:
                value = float(text)
            tokens.append(Token("number", value, i))
            i = number.end()
            continue
        name = _NAME_RE.match(expression, i)
        if name:
            word = name.group(0)
            arg = _ARG_RE.match(word)
            if arg:
                index = int(arg.group(1))
                if index < 1:
                    raise ExpressionError("Argument references start at _1", expression, i)
                tokens.append(Token("arg", index, i))
            elif word in STRING_OPERATORS:
                tokens.append(Token("op", word, i))
            else:
                tokens.append(Token("name", word, i))
            i = name.end()
            continue
        raise ExpressionError(f"Unexpected character {ch!r}", expression, i)
    return tokens


# ── Parser ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class ArgRef:
    index: int  # 1-based


@dataclass(frozen=True)
class Call:
    function: GuardFunction
    args: tuple


@dataclass(frozen=True)
class Comparison:
    left: Any
    op: Optional[str]
    right: Any = None


@dataclass(frozen=True)
class Guard:
    """A parsed guard expression: all atoms must hold."""

    source: str
    atoms: tuple

    def evaluate(self, args: Sequence[Any]) -> bool:
        for atom in self.atoms:
            if not _evaluate_atom(atom, args):
                return False
        return True


class _Parser:
    def __init__(self, expression: str, tokens: list[Token]):
        self.expression = expression
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self, expected: str) -> Token:
        token = self._peek()
        if token is None:
            raise ExpressionError(
                f"Expected {expected} but the expression ended", self.expression, len(self.expression)
            )
        if token.kind != expected:
            raise ExpressionError(
                f"Expected {expected}, found {token.value!r}", self.expression, token.pos
            )
        self.pos += 1
        return token

    def parse(self) -> Guard:
        if not self.tokens:
            return Guard(self.expression, ())
        atoms = [self._atom()]
        while self._peek() is not None:
            self._next("and")
            atoms.append(self._atom())
        return Guard(self.expression, tuple(atoms))

    def _atom(self) -> Comparison:
        left = self._operand()
        token = self._peek()
        if token is None or token.kind == "and":
            return Comparison(left, None)
        op = self._next("op").value
        right = self._operand()
        return Comparison(left, op, right)

    def _operand(self):
        token = self._peek()
        if token is None:
            raise ExpressionError(
                "Expected an operand but the expression ended", self.expression, len(self.expression)
            )
        self.pos += 1
        if token.kind in ("number", "string"):
            return Literal(token.value)
        if token.kind == "arg":
            return ArgRef(token.value)
        if token.kind == "name":
            return self._call(token)
        raise ExpressionError(f"Unexpected {token.value!r}", self.expression, token.pos)

    def _call(self, name: Token) -> Call:
        function = FUNCTIONS.get(name.value)
        if function is None:
            raise ExpressionError(f"Unknown function '{name.value}'", self.expression, name.pos)
        if self.depth >= MAX_NESTING:
            raise ExpressionError("Expression nested too deeply", self.expression, name.pos)
        self.depth += 1
        self._next("lparen")
        args = [self._operand()]
        while self._peek() is not None and self._peek().kind == "comma":
            self.pos += 1
            args.append(self._operand())
        self._next("rparen")
        self.depth -= 1
        if not function.min_args <= len(args) <= function.max_args:
            expected = (
                str(function.min_args)
                if function.min_args == function.max_args
                else f"{function.min_args}-{function.max_args}"
            )
            raise ExpressionError(
                f"Function '{function.name}' takes {expected} arguments, got {len(args)}",
                self.expression,
                name.pos,
            )
        return Call(function, tuple(args))


@functools.lru_cache(maxsize=1024)
def parse(expression: str) -> Guard:
    """Parse a guard expression.

    Raises:
        ExpressionError: If the expression is malformed.
    """
    return _Parser(expression, tokenize(expression)).parse()


# ── Evaluation ─────────────────────────────────────────────────────

def _value(node, args: Sequence[Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, ArgRef):
        return args[node.index - 1] if node.index <= len(args) else None
    return node.function.impl(*(_value(arg, args) for arg in node.args))


def _evaluate_atom(atom: Comparison, args: Sequence[Any]) -> bool:
    left = _value(atom.left, args)
    if atom.op is None:
        return is_true(left)
    right = _value(atom.right, args)
    if atom.op == "eq":
        return to_text(left) == to_text(right)
    if atom.op == "ne":
        return to_text(left) != to_text(right)
    a, b = to_number(left), to_number(right)
    if atom.op == "==":
        return a == b
    if atom.op == "!=":
        return a != b
    if atom.op == "<":
        return a < b
    if atom.op == ">":
        return a > b
    if atom.op == "<=":
        return a <= b
    return a >= b


def evaluate(expression: str, args: Sequence[Any] = ()) -> bool:
    """Evaluate a guard expression against positional call arguments.

    An empty expression always matches.

    Raises:
        ExpressionError: If the expression is malformed.
    """
    if not expression or not expression.strip():
        return True
    guard = parse(expression)
    try:
        return guard.evaluate(args)
    except (TypeError, ValueError, OverflowError) as e:
        raise ExpressionError(f"Evaluation failed: {e}", expression) from e
