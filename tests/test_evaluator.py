import pytest

from poolbreaker.core.evaluator import UNKNOWN, NumericEvaluator, is_numeric_string, to_int32, to_uint32
from poolbreaker.core.syntax import parse_program


def fold(expression):
    program = parse_program(f"({expression});")
    statement = program.node(program.body[0])
    return NumericEvaluator(program).evaluate(statement.children[0])


@pytest.mark.parametrize("expression,expected", [
    ("0x1a", 26),
    ("-0x5 + 10", 5),
    ("0x2 * 0x3 - 1", 5),
    ("7 / 2", 3.5),
    ("-7 % 3", -1),
    ("0xffffffff | 0", -1),
    ("-1 >>> 0", 4294967295),
    ("1 << 33", 2),
    ("-8 >> 1", -4),
    ("0xf0 & 0x3c", 0x30),
    ("0xf0 ^ 0xff", 0x0f),
    ("'0x10' - 1", 15),
    ("+'12'", 12),
])
def test_numeric_folds(expression, expected):
    assert fold(expression) == expected


def test_plus_concatenates_when_a_side_is_a_string():
    assert fold("'1' + 2") == '12'
    assert fold("1 + '2'") == '12'


def test_concatenation_result_must_stay_numeric():
    assert fold("'0x1' + '0x2'") is UNKNOWN


@pytest.mark.parametrize("expression", [
    "1 / 0",
    "5 % 0",
    "'abc' + 1",
    "'abc'",
    "x + 1",
    "!1",
    "typeof 1",
    "f(1)",
    "1.5 + '2'",
])
def test_unfoldable_expressions_are_unknown(expression):
    assert fold(expression) is UNKNOWN


def test_evaluate_number_coerces_numeric_strings():
    program = parse_program("('0x10');")
    expression = program.node(program.body[0]).children[0]
    assert NumericEvaluator(program).evaluate_number(expression) == 16


def test_unknown_is_falsy_singleton():
    assert not UNKNOWN
    assert type(UNKNOWN)() is UNKNOWN


def test_int32_conversions():
    assert to_int32(2 ** 31) == -2 ** 31
    assert to_uint32(-1) == 2 ** 32 - 1
    assert to_uint32(float('inf')) == 0


def test_numeric_string_shapes():
    assert is_numeric_string('0x1F')
    assert is_numeric_string('42')
    assert not is_numeric_string('4.2')
    assert not is_numeric_string('')
