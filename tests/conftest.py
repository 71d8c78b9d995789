"""Shared fixtures: small obfuscated samples of each supported shape"""

import pytest

from poolbreaker.core.pipeline import PipelineConfig


SIMPLE_POOL = """var p = ['a', 'b', 'c', 'd', 'e', 'f'];
function d(i) { return p[i - 2]; }
console.log(d(2), d(7), d(100));
"""

# pool inside an accessor, reader that re-binds itself to an inner function
ACCESSOR_POOL = """function acc() { var arr = ['hello', 'world', 'foo', 'bar', 'baz', 'qux']; acc = function () { return arr; }; return acc(); }
function dec(i, k) { var c = acc(); dec = function (x, y) { x = x - 0x10; return c[x]; }; return dec(i, k); }
console.log(dec(0x10, 'key'), dec(0x8 + 0x9, 'k2'));
"""

KEYED_POOL = """var pool = ['alpha', 'beta', 'gamma', 'delta', 'epsilon', 'zeta'];
function dec(i, k) { return pool[i] + k; }
console.log(dec(1, 'X'), dec(0x2, '!'), dec(0, '0x1'));
"""

ROTATED_POOL = """var p = ['a', 'b', 'c', 'd', 'e', 'f'];
(function (arr, n) { while (n--) { arr.push(arr.shift()); } })(p, 2);
function d(i) { return p[i]; }
console.log(d(0));
"""

# JSFuck-style wrapper around a string-array program
LAYERED_JSFUCK = (
    '[]["filter"]["constructor"]'
    '("var p=[\'a\',\'b\',\'c\',\'d\',\'e\',\'f\'];function d(i){return p[i-2];}console.log(d(2));")()'
)

AAENCODE_SAMPLE = "var ﾟωﾟ = []['filter']['constructor']; ﾟωﾟ(ﾟωﾟ('return\"alert(1)\"')())('_');"


@pytest.fixture
def simple_pool():
    return SIMPLE_POOL


@pytest.fixture
def accessor_pool():
    return ACCESSOR_POOL


@pytest.fixture
def keyed_pool():
    return KEYED_POOL


@pytest.fixture
def rotated_pool():
    return ROTATED_POOL


@pytest.fixture
def layered_jsfuck():
    return LAYERED_JSFUCK


@pytest.fixture
def aaencode_sample():
    return AAENCODE_SAMPLE


@pytest.fixture
def config():
    return PipelineConfig()
