"""
Call-Site Rewriter
Replaces calls to validated decoders with the literal strings they return

The value always comes from the live sandboxed function, never from a
re-derived formula. A rewritten call-site becomes a string literal and no
longer matches the callee predicate, which makes repeated runs idempotent.

Also holds the two textual cleanups applied after a successful rewrite:
boolean normalization and version-marker stripping.
"""

import logging
from typing import Dict, Iterable, Optional, Set

from ..errors import SandboxFailure
from ..evaluator import UNKNOWN, NumericEvaluator
from ..syntax import (
    ArrayLiteral, BinaryOp, BooleanLiteral, Call, Declarator, Function, Identifier, NumberLiteral,
    Omitted, Opaque, Program, StringLiteral, UnaryOp
)
from .prelude import Prelude
from .validator import ValidatedDecoder

logger = logging.getLogger(__name__)

VERSION_MARKER = 'jsjiami.com.v7'


def _is_pure(program: Program, node_id: int) -> bool:
    """Expression that can be dropped without losing a side effect"""
    node = program.node(node_id)
    if isinstance(node, (Identifier, StringLiteral, NumberLiteral, BooleanLiteral)):
        return True
    if isinstance(node, UnaryOp):
        return node.operator != 'delete' and _is_pure(program, node.argument)
    if isinstance(node, BinaryOp):
        return _is_pure(program, node.left) and _is_pure(program, node.right)
    return False


def _enclosing_function(program: Program, node_id: int) -> Optional[int]:
    for ancestor in program.ancestors(node_id):
        if isinstance(ancestor, Function):
            return ancestor.id
    return None


def _identifier_names(program: Program, node_id: int) -> Set[str]:
    return {n.name for n in program.walk(node_id) if isinstance(n, Identifier)}


def local_bindings(program: Program, function: Function) -> Set[str]:
    """
    Names a function binds for its own body

    Parameters, its own name when it is a named function expression, and
    every declarator or nested function declaration whose closest enclosing
    function is this one (block-scoped declarations included).
    """
    names = set(function.param_names)
    if function.kind == 'FunctionExpression' and function.name:
        names.add(function.name)
    for node in program.walk(function.body):
        if isinstance(node, Declarator):
            if _enclosing_function(program, node.id) == function.id:
                names |= _identifier_names(program, node.target)
        elif isinstance(node, Function) and node.kind == 'FunctionDeclaration' and node.name:
            if _enclosing_function(program, node.id) == function.id:
                names.add(node.name)
    return names


class CallSiteRewriter:
    """Second structural pass over the original tree"""

    def __init__(self, program: Program, decoders: Iterable[ValidatedDecoder],
                 protected: Optional[Prelude] = None):
        """
        Args:
            program: Tree to rewrite in place
            decoders: Validated decoders bound to a live sandbox
            protected: Prelude whose statements must keep their call-sites
        """
        self.program = program
        self.decoders: Dict[str, ValidatedDecoder] = {d.name: d for d in decoders}
        self.protected = protected
        self.evaluator = NumericEvaluator(program)
        self.skipped = 0
        self._bindings: Dict[int, Set[str]] = {}

    def rewrite(self) -> int:
        """
        Rewrite every resolvable call-site

        Returns:
            Number of call-sites replaced

        Raises:
            SandboxFailure: a live decoder call timed out
        """
        calls = [node.id for node in self.program.walk() if isinstance(node, Call)]

        rewritten = 0
        # innermost first, so d(d(2)) sees its argument already replaced
        for call_id in reversed(calls):
            if self._rewrite_call(call_id):
                rewritten += 1
        logger.debug("Rewrote %d call-sites, skipped %d", rewritten, self.skipped)
        return rewritten

    def _rewrite_call(self, call_id: int) -> bool:
        call = self.program.node(call_id)
        if not isinstance(call, Call):
            return False
        callee = self.program.node(call.callee)
        if not isinstance(callee, Identifier) or callee.name not in self.decoders:
            return False
        if self.protected is not None and self.protected.covers(call.span):
            return False
        if self._is_shadowed(call_id, callee.name):
            return False

        decoder = self.decoders[callee.name]
        args = self._resolve_arguments(call, decoder)
        if args is None:
            self.skipped += 1
            return False

        try:
            value = decoder(*args)
        except SandboxFailure as e:
            if e.timed_out:
                raise
            logger.debug("%s%r threw: %s", decoder.name, args, e)
            self.skipped += 1
            return False

        if not isinstance(value, str):
            self.skipped += 1
            return False

        self.program.replace(call_id, StringLiteral, value)
        return True

    def _is_shadowed(self, call_id: int, name: str) -> bool:
        """True if a parameter, local or catch binding hides the global decoder"""
        for ancestor in self.program.ancestors(call_id):
            if isinstance(ancestor, Function):
                if ancestor.id not in self._bindings:
                    self._bindings[ancestor.id] = local_bindings(self.program, ancestor)
                if name in self._bindings[ancestor.id]:
                    return True
            elif isinstance(ancestor, Opaque) and ancestor.kind == 'CatchClause':
                for child_id in ancestor.children:
                    child = self.program.node(child_id)
                    if isinstance(child, Opaque) and child.kind == 'BlockStatement':
                        continue
                    if name in _identifier_names(self.program, child_id):
                        return True
        return False

    def _resolve_arguments(self, call: Call, decoder: ValidatedDecoder):
        if not call.arguments or len(call.arguments) > 2:
            return None

        index = self.evaluator.evaluate(call.arguments[0])
        if index is UNKNOWN:
            return None
        if len(call.arguments) == 1:
            return (index,)

        key_id = call.arguments[1]
        key_node = self.program.node(key_id)
        # keys are opaque strings to the decoder: never coerce them
        key = key_node.value if isinstance(key_node, StringLiteral) else self.evaluator.evaluate(key_id)
        if key is not UNKNOWN:
            return (index, key)

        # a one-parameter decoder ignores the key; drop it only if that loses nothing
        if decoder.arity <= 1 and _is_pure(self.program, key_id):
            return (index,)
        return None


def normalize_booleans(program: Program) -> int:
    """Fold `!![]` to `true` and `![]` to `false`"""

    def is_empty_array(node_id):
        node = program.node(node_id)
        return isinstance(node, ArrayLiteral) and not node.elements

    def is_not(node, test):
        return isinstance(node, UnaryOp) and node.operator == '!' and test(node.argument)

    count = 0
    for node in program.walk():
        if is_not(node, lambda arg: is_not(program.node(arg), is_empty_array)):
            program.replace(node.id, BooleanLiteral, True)
            count += 1
    for node in program.walk():
        if is_not(node, is_empty_array):
            program.replace(node.id, BooleanLiteral, False)
            count += 1
    return count


def strip_version_marker(program: Program, marker: str = VERSION_MARKER) -> int:
    """
    Drop top-level `var x = '...<marker>...';` statements nothing refers to

    Returns:
        Number of statements removed
    """
    removed = 0
    for statement_id in program.body:
        statement = program.node(statement_id)
        if not isinstance(statement, Opaque) or statement.kind != 'VariableDeclaration':
            continue
        if len(statement.children) != 1:
            continue
        declarator = program.node(statement.children[0])
        if not isinstance(declarator, Declarator) or declarator.init is None:
            continue
        target = program.node(declarator.target)
        init = program.node(declarator.init)
        if not isinstance(target, Identifier) or not isinstance(init, StringLiteral):
            continue
        if marker not in init.value:
            continue

        references = sum(
            1 for node in program.walk()
            if isinstance(node, Identifier) and node.name == target.name
        )
        if references == 1:
            program.replace(statement_id, Omitted)
            removed += 1
    return removed
