from __future__ import annotations
import operator
import re
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .errors import ConditionError
from .utils import value_text

COMPARE_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}

_KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
    "none": None,
}

_NUMERIC_RE = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?\s*$")
_INTEGRAL_RE = re.compile(r"^\s*[-+]?\d+\s*$")

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>-?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<op>==|!=|>=|<=|&&|\|\||[<>&|()])
  | (?P<name>`[^`]+`|[A-Za-z_][A-Za-z0-9_.]*)
    """,
    re.VERBOSE,
)

Token = Tuple[str, Any]


def to_number(v: Any) -> Union[int, float, Decimal, None]:
    """
    Numeric view of a value, or None when it does not read as a number.
    Integral text becomes an int and other numeric text a Decimal, so long
    numeric strings keep every digit.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return v
    if isinstance(v, str) and _NUMERIC_RE.match(v):
        if _INTEGRAL_RE.match(v):
            return int(v)
        return Decimal(v.strip())
    return None


def _align(a: Any, b: Any) -> Tuple[Any, Any]:
    # Decimal vs float: compare as floats so "0.1" equals the float 0.1
    if isinstance(a, Decimal) and isinstance(b, float):
        return float(a), b
    if isinstance(a, float) and isinstance(b, Decimal):
        return a, float(b)
    return a, b


def compare(op: str, left: Any, right: Any) -> bool:
    """
    Compare two field values.
    Both sides numeric (numbers or numeric strings): numeric comparison.
    Otherwise ==/!= compare text forms, and ordering is only defined between strings.
    Raises TypeError for an ordering comparison it cannot perform.
    """
    fn = COMPARE_OPS[op]
    ln, rn = to_number(left), to_number(right)
    if ln is not None and rn is not None:
        return fn(*_align(ln, rn))
    if op in ("==", "!="):
        return fn(value_text(left), value_text(right))
    if isinstance(left, str) and isinstance(right, str):
        return fn(left, right)
    raise TypeError(f"cannot compare {left!r} {op} {right!r}")


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise ConditionError(text, f"unexpected character {text[pos]!r} at {pos}")
        pos = m.end()
        kind = m.lastgroup
        raw = m.group(kind)
        if kind == "ws":
            continue
        if kind == "number":
            tokens.append(("literal", float(raw) if any(c in raw for c in ".eE") else int(raw)))
        elif kind == "string":
            body = raw[1:-1]
            tokens.append(("literal", re.sub(r"\\(.)", r"\1", body)))
        elif kind == "op":
            tokens.append(("op", {"&&": "&", "||": "|"}.get(raw, raw)))
        else:
            if raw.startswith("`"):
                tokens.append(("field", raw[1:-1]))
            elif raw.lower() in _KEYWORDS:
                tokens.append(("literal", _KEYWORDS[raw.lower()]))
            else:
                tokens.append(("field", raw))
    return tokens


class _Parser:
    """
    Recursive descent over the grammar:
        expr    := and ('|' and)*
        and     := cmp ('&' cmp)*
        cmp     := operand (OP operand)?
        operand := FIELD | LITERAL | '(' expr ')'
    """
    def __init__(self, text: str, tokens: List[Token]) -> None:
        self.text = text
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ConditionError(self.text, "unexpected end of condition")
        self.pos += 1
        return tok

    def _is_op(self, *ops: str) -> bool:
        tok = self._peek()
        return tok is not None and tok[0] == "op" and tok[1] in ops

    def parse(self) -> tuple:
        node = self._expr()
        if self._peek() is not None:
            raise ConditionError(self.text, f"unexpected token {self._peek()[1]!r}")
        return node

    def _expr(self) -> tuple:
        node = self._and()
        while self._is_op("|"):
            self._take()
            node = ("or", node, self._and())
        return node

    def _and(self) -> tuple:
        node = self._cmp()
        while self._is_op("&"):
            self._take()
            node = ("and", node, self._cmp())
        return node

    def _cmp(self) -> tuple:
        left = self._operand()
        if self._is_op(*COMPARE_OPS):
            op = self._take()[1]
            right = self._operand()
            return ("cmp", op, left, right)
        return left

    def _operand(self) -> tuple:
        kind, value = self._take()
        if kind == "op":
            if value == "(":
                node = self._expr()
                if not self._is_op(")"):
                    raise ConditionError(self.text, "missing ')'")
                self._take()
                return node
            raise ConditionError(self.text, f"unexpected operator {value!r}")
        return (kind, value)


class Condition:
    """
    Compiled condition string. An empty or missing condition matches every record.
    """
    __slots__ = ("text", "_tree")

    def __init__(self, text: Optional[str]) -> None:
        self.text = text or ""
        self._tree = None
        if self.text.strip():
            self._tree = _Parser(self.text, tokenize(self.text)).parse()

    def matches(self, record: Dict[str, Any]) -> bool:
        if self._tree is None:
            return True
        result = self._eval(self._tree, record)
        if not isinstance(result, bool):
            raise ConditionError(self.text, f"expression yields {result!r}, not a boolean")
        return result

    def _eval(self, node: tuple, record: Dict[str, Any]) -> Any:
        kind = node[0]
        if kind == "literal":
            return node[1]
        if kind == "field":
            name = node[1]
            if name not in record:
                raise ConditionError(self.text, f"field '{name}' not found")
            return record[name]
        if kind == "cmp":
            _, op, lnode, rnode = node
            try:
                return compare(op, self._eval(lnode, record), self._eval(rnode, record))
            except TypeError as e:
                raise ConditionError(self.text, str(e)) from e
        # Both sides are evaluated so a missing field always surfaces as an error
        left = self._as_bool(self._eval(node[1], record))
        right = self._as_bool(self._eval(node[2], record))
        return (left and right) if kind == "and" else (left or right)

    def _as_bool(self, v: Any) -> bool:
        if not isinstance(v, bool):
            raise ConditionError(self.text, f"{v!r} is not a boolean")
        return v

    def __repr__(self) -> str:
        return f"Condition({self.text!r})"


def evaluate(condition: Optional[str], record: Dict[str, Any]) -> bool:
    return Condition(condition).matches(record)
