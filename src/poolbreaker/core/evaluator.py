"""
Structural Numeric Evaluator
Folds literal / arithmetic / bitwise sub-expressions to constants without
executing anything

Supported leaves: numeric literals, and string literals that are hex (0x..)
or decimal digit sequences. Supported operators: unary + -, binary
+ - * / % << >> >>> & | ^. Everything else, division or modulo by zero,
and non-finite results fold to UNKNOWN.

Operators follow JavaScript semantics: + concatenates when either side is a
string, the other operators coerce numeric strings, bitwise operators work
on 32-bit integers.
"""

import math
import re
from typing import Union

from .syntax import BinaryOp, NumberLiteral, Program, StringLiteral, UnaryOp


class _Unknown:
    """Sentinel for expressions that cannot be folded statically"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNKNOWN'

    def __bool__(self):
        return False


UNKNOWN = _Unknown()

Value = Union[int, float, str]

_HEX_STRING = re.compile(r'0[xX][0-9a-fA-F]+')
_DECIMAL_STRING = re.compile(r'[0-9]+')
_MAX_SAFE_INTEGER = 2 ** 53


def is_numeric_string(text: str) -> bool:
    return bool(_HEX_STRING.fullmatch(text) or _DECIMAL_STRING.fullmatch(text))


def to_number(value):
    """JavaScript ToNumber restricted to the supported leaves"""
    if isinstance(value, str):
        if _HEX_STRING.fullmatch(value):
            return int(value, 16)
        if _DECIMAL_STRING.fullmatch(value):
            return int(value)
        return UNKNOWN
    return value


def to_uint32(value) -> int:
    if not math.isfinite(value):
        return 0
    return int(math.trunc(value)) % 2 ** 32


def to_int32(value) -> int:
    unsigned = to_uint32(value)
    return unsigned - 2 ** 32 if unsigned >= 2 ** 31 else unsigned


def _normalize(value):
    """Collapse a float result to int where JavaScript would print an integer"""
    if isinstance(value, str):
        return value
    value = float(value)
    if not math.isfinite(value):
        return UNKNOWN
    if value.is_integer() and abs(value) <= _MAX_SAFE_INTEGER:
        return int(value)
    return value


def _to_js_string(value):
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    # non-integral number formatting differs between Python and JavaScript
    return UNKNOWN


class NumericEvaluator:
    """
    Pure fold over a Program's expression nodes

    evaluate() returns an int, float or numeric string, or UNKNOWN.
    """

    def __init__(self, program: Program):
        self.program = program

    def evaluate(self, node_id: int):
        try:
            return self._eval(node_id)
        except RecursionError:
            return UNKNOWN

    def evaluate_number(self, node_id: int):
        """evaluate() followed by numeric coercion"""
        value = self.evaluate(node_id)
        if value is UNKNOWN:
            return UNKNOWN
        return to_number(value)

    def _eval(self, node_id: int):
        node = self.program.node(node_id)

        if isinstance(node, NumberLiteral):
            return _normalize(node.value)

        if isinstance(node, StringLiteral):
            return node.value if is_numeric_string(node.value) else UNKNOWN

        if isinstance(node, UnaryOp):
            if node.operator not in ('+', '-'):
                return UNKNOWN
            operand = self._eval(node.argument)
            if operand is UNKNOWN:
                return UNKNOWN
            number = to_number(operand)
            if number is UNKNOWN:
                return UNKNOWN
            return _normalize(-number if node.operator == '-' else number)

        if isinstance(node, BinaryOp):
            left = self._eval(node.left)
            if left is UNKNOWN:
                return UNKNOWN
            right = self._eval(node.right)
            if right is UNKNOWN:
                return UNKNOWN
            return self._binary(node.operator, left, right)

        return UNKNOWN

    def _binary(self, operator: str, left, right):
        if operator == '+' and (isinstance(left, str) or isinstance(right, str)):
            left, right = _to_js_string(left), _to_js_string(right)
            if left is UNKNOWN or right is UNKNOWN:
                return UNKNOWN
            joined = left + right
            return joined if is_numeric_string(joined) else UNKNOWN

        a, b = to_number(left), to_number(right)
        if a is UNKNOWN or b is UNKNOWN:
            return UNKNOWN

        if operator == '+':
            return _normalize(float(a) + float(b))
        if operator == '-':
            return _normalize(float(a) - float(b))
        if operator == '*':
            return _normalize(float(a) * float(b))
        if operator == '/':
            if b == 0:
                return UNKNOWN
            return _normalize(float(a) / float(b))
        if operator == '%':
            if b == 0:
                return UNKNOWN
            return _normalize(math.fmod(float(a), float(b)))

        shift = to_uint32(b) & 31
        if operator == '<<':
            return to_int32(to_int32(a) << shift)
        if operator == '>>':
            return to_int32(a) >> shift
        if operator == '>>>':
            return to_uint32(a) >> shift
        if operator == '&':
            return to_int32(to_int32(a) & to_int32(b))
        if operator == '|':
            return to_int32(to_int32(a) | to_int32(b))
        if operator == '^':
            return to_int32(to_int32(a) ^ to_int32(b))

        return UNKNOWN
