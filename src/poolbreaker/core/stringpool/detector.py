"""
Pool & Reader Detector
Finds string pools and the functions that index them with a
parameter-dependent expression

Detection is purely structural: no identifier name, offset constant or
brand string is consulted, so renamed/minified variants of the same shape
are found the same way.

Shapes recognized:

    var pool = ['a', 'b', 'c', 'd', 'e', 'f'];           // pool
    function d(i) { return pool[i - 2]; }                 // reader

    function acc() { var arr = ['...', ...];              // accessor
                     acc = function () { return arr; };
                     return acc(); }
    function d(i, k) { var c = acc();                     // reader via alias
                       d = function (x, y) { return c[x - 0x1a]; };
                       return d(i, k); }
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Set

from ..syntax import (
    ArrayLiteral, Call, Declarator, Function, Identifier, MemberAccess, Program, StringLiteral
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_POOL_SIZE = 6


@dataclass
class StringPool:
    """Array literal made only of string constants, bound to an identifier"""
    name: str
    values: List[str]
    declarator_id: int


@dataclass
class DecoderCandidate:
    """Function that indexes a pool with a parameter-dependent expression"""
    name: str
    parameter_names: List[str]
    body_id: int

    @property
    def arity(self) -> int:
        return len(self.parameter_names)


@dataclass
class DetectionReport:
    """Everything the detector found in one program"""
    pools: Dict[str, StringPool] = field(default_factory=dict)
    accessors: Set[str] = field(default_factory=set)
    candidates: List[DecoderCandidate] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.pools) and bool(self.candidates)

    @property
    def tracked_names(self) -> Set[str]:
        """Pool identifiers plus accessor function names"""
        return set(self.pools) | self.accessors

    def to_dict(self) -> Dict:
        return {
            'pools': {name: len(pool.values) for name, pool in self.pools.items()},
            'accessors': sorted(self.accessors),
            'candidates': [c.name for c in self.candidates],
        }


class PoolDetector:
    """Structural scanner for string-array obfuscation"""

    def __init__(self, min_pool_size: int = DEFAULT_MIN_POOL_SIZE):
        self.min_pool_size = min_pool_size

    def scan(self, program: Program) -> DetectionReport:
        report = DetectionReport()
        report.pools = self._find_pools(program)
        if not report.pools:
            return report

        report.accessors = self._find_accessors(program, report.pools)
        report.candidates = self._find_readers(program, report)

        logger.debug("Detected pools=%s accessors=%s readers=%s",
                     sorted(report.pools), sorted(report.accessors),
                     [c.name for c in report.candidates])
        return report

    def _find_pools(self, program: Program) -> Dict[str, StringPool]:
        pools: Dict[str, StringPool] = {}
        for node in program.walk():
            if not isinstance(node, Declarator) or node.init is None:
                continue
            target = program.node(node.target)
            init = program.node(node.init)
            if not isinstance(target, Identifier) or not isinstance(init, ArrayLiteral):
                continue
            if len(init.elements) < self.min_pool_size:
                continue
            if any(el is None or not isinstance(program.node(el), StringLiteral) for el in init.elements):
                continue
            if target.name not in pools:
                values = [program.node(el).value for el in init.elements]
                pools[target.name] = StringPool(target.name, values, node.id)
        return pools

    def _find_accessors(self, program: Program, pools: Dict[str, StringPool]) -> Set[str]:
        """Functions whose body declares a pool"""
        declarators = {pool.declarator_id for pool in pools.values()}
        accessors = set()
        for name, function in program.function_bindings():
            if any(node.id in declarators for node in program.walk(function.body)):
                accessors.add(name)
        return accessors

    def _find_readers(self, program: Program, report: DetectionReport) -> List[DecoderCandidate]:
        tracked = report.tracked_names
        candidates = []
        seen = set()

        for name, function in program.function_bindings():
            if not function.param_names or name in seen or name in report.accessors:
                continue

            params = set(function.param_names)
            aliases = set(report.pools)
            for node in program.walk(function.body):
                if isinstance(node, Function):
                    params.update(node.param_names)
                elif isinstance(node, Declarator) and node.init is not None:
                    if self._is_pool_source(program, node.init, tracked):
                        target = program.node(node.target)
                        if isinstance(target, Identifier):
                            aliases.add(target.name)

            if self._has_dependent_index(program, function.body, aliases, params):
                seen.add(name)
                candidates.append(DecoderCandidate(name, list(function.param_names), function.body))

        return candidates

    def _is_pool_source(self, program: Program, node_id: int, tracked: Set[str]) -> bool:
        """`pool` or `accessor()`"""
        node = program.node(node_id)
        if isinstance(node, Identifier):
            return node.name in tracked
        if isinstance(node, Call):
            callee = program.node(node.callee)
            return isinstance(callee, Identifier) and callee.name in tracked
        return False

    def _has_dependent_index(self, program: Program, body_id: int, aliases: Set[str], params: Set[str]) -> bool:
        for node in program.walk(body_id):
            if not isinstance(node, MemberAccess) or not node.computed:
                continue
            obj = program.node(node.obj)
            if not isinstance(obj, Identifier) or obj.name not in aliases:
                continue
            if program.referenced_names(node.prop) & params:
                return True
        return False
