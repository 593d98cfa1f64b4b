# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Safe Condition Evaluator

Evaluates boolean conditions for conditional nodes with a small
hand-written parser. Expressions never reach eval/exec.

Grammar:
    expr       := and_expr (('||' | 'or') and_expr)*
    and_expr   := not_expr (('&&' | 'and') not_expr)*
    not_expr   := 'not' not_expr | comparison
    comparison := unary (cmp_op unary)?
    unary      := '!' unary | primary
    primary    := literal | path | '-' NUMBER | '(' expr ')'
    path       := IDENT ('.' IDENT | '[' (NUMBER | STRING) ']')*

'!' binds to its operand, so "!data.done === true" negates data.done before
comparing. 'not' applies to a whole comparison.

'==' and '!=' behave like '===' and '!==': no type coercion, and booleans
never equal numbers.

Truthiness follows the workflow editor's expression language: only None,
False, 0, NaN and "" are false. Empty lists and objects are true.
"""

import math
import operator
import re
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ConditionSyntaxError


# Allowed comparison operators
COMPARISON_OPERATORS = {
    "===": "eq",
    "==": "eq",
    "!==": "ne",
    "!=": "ne",
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

LITERALS = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
    "null": None,
    "None": None,
    "undefined": None,
}

_TOKEN_PATTERN = re.compile(r"""
    (?P<ws>\s+)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
  | (?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<op>===|!==|==|!=|>=|<=|&&|\|\||[-><!().\[\]])
""", re.VERBOSE)

_KEYWORD_OPS = {"and": "&&", "or": "||", "not": "not"}

Token = Tuple[str, Any]


def _tokenize(condition: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(condition):
        match = _TOKEN_PATTERN.match(condition, pos)
        if not match:
            raise ConditionSyntaxError(condition, f"unexpected character {condition[pos]!r} at {pos}")
        pos = match.end()
        kind = match.lastgroup
        text = match.group(kind)

        if kind == "ws":
            continue
        if kind == "number":
            tokens.append(("value", float(text) if "." in text else int(text)))
        elif kind == "string":
            tokens.append(("value", _unquote(text)))
        elif kind == "ident" and text in _KEYWORD_OPS:
            tokens.append(("op", _KEYWORD_OPS[text]))
        elif kind == "ident" and text in LITERALS:
            tokens.append(("value", LITERALS[text]))
        else:
            tokens.append((kind, text))
    return tokens


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", lambda m: {"n": "\n", "t": "\t"}.get(m.group(1), m.group(1)), body)


def is_truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def strict_equals(left: Any, right: Any) -> bool:
    """Equality where booleans never equal numbers."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _compare(op: str, left: Any, right: Any) -> bool:
    handler = COMPARISON_OPERATORS[op]
    if handler == "eq":
        return strict_equals(left, right)
    if handler == "ne":
        return not strict_equals(left, right)
    try:
        return bool(handler(left, right))
    except TypeError:
        # Ordering between unrelated types (e.g. None > 3) is simply false
        return False


class _Parser:
    """Recursive descent parser that evaluates as it parses."""

    def __init__(self, condition: str, variables: Dict[str, Any]):
        self.condition = condition
        self.variables = variables
        self.tokens = _tokenize(condition)
        self.pos = 0

    def parse(self) -> Any:
        if not self.tokens:
            raise ConditionSyntaxError(self.condition, "empty expression")
        value = self._or_expr()
        if self._peek() is not None:
            raise self._error(f"unexpected {self._peek()[1]!r}")
        return value

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> Token:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of expression")
        self.pos += 1
        return token

    def _accept(self, op: str) -> bool:
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] == op:
            self.pos += 1
            return True
        return False

    def _expect(self, op: str) -> None:
        if not self._accept(op):
            found = self._peek()
            raise self._error(f"expected {op!r}, found {found[1] if found else 'end of expression'!r}")

    def _error(self, reason: str) -> ConditionSyntaxError:
        return ConditionSyntaxError(self.condition, reason)

    def _or_expr(self) -> Any:
        value = self._and_expr()
        while self._accept("||"):
            right = self._and_expr()
            value = is_truthy(value) or is_truthy(right)
        return value

    def _and_expr(self) -> Any:
        value = self._not_expr()
        while self._accept("&&"):
            right = self._not_expr()
            value = is_truthy(value) and is_truthy(right)
        return value

    def _not_expr(self) -> Any:
        if self._accept("not"):
            return not is_truthy(self._not_expr())
        return self._comparison()

    def _comparison(self) -> Any:
        left = self._unary()
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] in COMPARISON_OPERATORS:
            self.pos += 1
            right = self._unary()
            return _compare(token[1], left, right)
        return left

    def _unary(self) -> Any:
        if self._accept("!"):
            return not is_truthy(self._unary())
        return self._primary()

    def _primary(self) -> Any:
        kind, text = self._next()
        if kind == "value":
            return text
        if kind == "op" and text == "-":
            kind, number = self._next()
            if kind != "value" or isinstance(number, bool) or not isinstance(number, (int, float)):
                raise self._error("'-' must be followed by a number")
            return -number
        if kind == "op" and text == "(":
            value = self._or_expr()
            self._expect(")")
            return value
        if kind == "ident":
            if text not in self.variables:
                raise self._error(f"undefined variable: {text}")
            return self._path(self.variables[text])
        raise self._error(f"unexpected {text!r}")

    def _path(self, current: Any) -> Any:
        while True:
            if self._accept("."):
                kind, name = self._next()
                if kind != "ident":
                    raise self._error(f"expected property name after '.', found {name!r}")
                current = _lookup(current, name)
            elif self._accept("["):
                kind, key = self._next()
                if kind != "value" or isinstance(key, (bool, float)) or key is None:
                    raise self._error("index must be an integer or a string")
                self._expect("]")
                current = _lookup(current, key)
            else:
                return current


def _lookup(current: Any, key: Any) -> Any:
    if isinstance(current, dict):
        return current.get(str(key))
    if isinstance(current, (list, str)):
        if key == "length":
            return len(current)
        if isinstance(key, int) and key < len(current):
            return current[key]
    return None


def evaluate_condition(condition: str, variables: Dict[str, Any]) -> bool:
    """
    Safely evaluate a boolean condition string.

    Args:
        condition: Expression, e.g. "data.count > 5 && data.status === 'open'"
        variables: Names the expression may reference

    Returns:
        Truthiness of the expression value

    Raises:
        ConditionSyntaxError: If the condition is malformed or names an unknown variable

    Examples:
        >>> evaluate_condition("data.count > 5", {"data": {"count": 10}})
        True
        >>> evaluate_condition("data.items.length > 0 and not data.done", {"data": {"items": [1], "done": False}})
        True
    """
    return is_truthy(_Parser(condition, variables).parse())
