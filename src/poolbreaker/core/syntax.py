"""
Syntax Tree Arena
Parses JavaScript with esprima and keeps the tree as a flat arena of node
variants addressed by stable integer ids

Only the syntactic forms the deobfuscation passes consume get their own
variant; every other form is an Opaque node that just records its kind and
children. Rewrites write a new variant into an existing slot, and render()
splices the replacement text into the original source at that slot's range,
so everything that was not replaced stays byte-identical.
"""

import json
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

import esprima

from .errors import ParseFailure


FUNCTION_KINDS = frozenset(['FunctionDeclaration', 'FunctionExpression', 'ArrowFunctionExpression'])

_NON_CHILD_KEYS = frozenset(['type', 'range', 'loc', 'regex'])
_IDENT_CHAR = re.compile(r'[\w$]')
_LONE_SURROGATE = re.compile('[\ud800-\udfff]')


@dataclass
class Node:
    id: int
    parent: Optional[int]
    span: Tuple[int, int]

    def child_ids(self) -> List[int]:
        return []


@dataclass
class StringLiteral(Node):
    value: str


@dataclass
class NumberLiteral(Node):
    value: float


@dataclass
class BooleanLiteral(Node):
    value: bool


@dataclass
class Identifier(Node):
    name: str


@dataclass
class ArrayLiteral(Node):
    elements: List[Optional[int]]

    def child_ids(self) -> List[int]:
        return [e for e in self.elements if e is not None]


@dataclass
class MemberAccess(Node):
    obj: int
    prop: int
    computed: bool

    def child_ids(self) -> List[int]:
        return [self.obj, self.prop]


@dataclass
class Call(Node):
    callee: int
    arguments: List[int]

    def child_ids(self) -> List[int]:
        return [self.callee] + self.arguments


@dataclass
class BinaryOp(Node):
    operator: str
    left: int
    right: int

    def child_ids(self) -> List[int]:
        return [self.left, self.right]


@dataclass
class UnaryOp(Node):
    operator: str
    argument: int

    def child_ids(self) -> List[int]:
        return [self.argument]


@dataclass
class Declarator(Node):
    target: int
    init: Optional[int]

    def child_ids(self) -> List[int]:
        return [self.target] if self.init is None else [self.target, self.init]


@dataclass
class Function(Node):
    kind: str
    name: Optional[str]
    params: List[int]
    param_names: List[str]
    body: int

    def child_ids(self) -> List[int]:
        return self.params + [self.body]


@dataclass
class Opaque(Node):
    kind: str
    children: List[int]

    def child_ids(self) -> List[int]:
        return list(self.children)


@dataclass
class Omitted(Node):
    """Replacement-only variant: renders as nothing"""


def quote_js_string(value: str) -> str:
    """Render a Python string as a double-quoted JavaScript string literal"""
    text = json.dumps(value, ensure_ascii=False)
    text = text.replace('\u2028', '\\u2028').replace('\u2029', '\\u2029')
    return _LONE_SURROGATE.sub(lambda m: '\\u%04x' % ord(m.group()), text)


class Program:
    """
    Arena-backed syntax tree of a single source file

    Node ids are assigned in pre-order, so sorting ids gives source order.
    """

    def __init__(self, source: str, nodes: List[Node], root: int = 0):
        self.source = source
        self.nodes = nodes
        self.root = root
        self._replaced: Set[int] = set()

    @property
    def body(self) -> List[int]:
        """Ids of the top-level statements, in source order"""
        return self.nodes[self.root].child_ids()

    @property
    def modified(self) -> bool:
        return bool(self._replaced)

    def node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def text(self, node_id: int) -> str:
        start, end = self.nodes[node_id].span
        return self.source[start:end]

    def walk(self, start: Optional[int] = None) -> Iterator[Node]:
        """
        Pre-order traversal over the current slots

        A slot replaced while the traversal is paused on it is not descended
        into; its old children are unreachable from the new variant.
        """
        stack = [self.root if start is None else start]
        while stack:
            node_id = stack.pop()
            yield self.nodes[node_id]
            stack.extend(reversed(self.nodes[node_id].child_ids()))

    def ancestors(self, node_id: int) -> Iterator[Node]:
        parent = self.nodes[node_id].parent
        while parent is not None:
            yield self.nodes[parent]
            parent = self.nodes[parent].parent

    def referenced_names(self, node_id: int) -> Set[str]:
        """Identifier names mentioned under a node, minus non-computed property names"""
        names = set()
        for node in self.walk(node_id):
            if isinstance(node, Identifier):
                parent = self.nodes[node.parent] if node.parent is not None else None
                if isinstance(parent, MemberAccess) and not parent.computed and parent.prop == node.id:
                    continue
                names.add(node.name)
        return names

    def function_bindings(self, start: Optional[int] = None) -> Iterator[Tuple[str, Function]]:
        """Yield (binding name, function) for declarations and function-valued variable bindings"""
        for node in self.walk(start):
            if not isinstance(node, Function):
                continue
            if node.kind == 'FunctionDeclaration':
                if node.name:
                    yield node.name, node
                continue
            parent = self.nodes[node.parent] if node.parent is not None else None
            if isinstance(parent, Declarator) and parent.init == node.id:
                target = self.nodes[parent.target]
                if isinstance(target, Identifier):
                    yield target.name, node

    def replace(self, node_id: int, variant, *fields) -> Node:
        """Write a new variant into an existing slot, keeping id, parent and span"""
        old = self.nodes[node_id]
        new = variant(old.id, old.parent, old.span, *fields)
        self.nodes[node_id] = new
        self._replaced.add(node_id)
        return new

    def render(self) -> str:
        """Serialize: original source with replaced slots spliced in"""
        if not self._replaced:
            return self.source

        outermost = [
            node_id for node_id in self._replaced
            if not any(a.id in self._replaced for a in self.ancestors(node_id))
        ]
        outermost.sort(key=lambda node_id: self.nodes[node_id].span[0])

        pieces = []
        cursor = 0
        for node_id in outermost:
            start, end = self.nodes[node_id].span
            if start < cursor:
                continue
            pieces.append(self.source[cursor:start])
            pieces.append(self._replacement_text(self.nodes[node_id], start, end))
            cursor = end
        pieces.append(self.source[cursor:])
        return ''.join(pieces)

    def _replacement_text(self, node: Node, start: int, end: int) -> str:
        if isinstance(node, StringLiteral):
            text = quote_js_string(node.value)
            parent = self.nodes[node.parent] if node.parent is not None else None
            # a bare string statement could become a directive ("use strict")
            if isinstance(parent, Opaque) and parent.kind == 'ExpressionStatement':
                text = '(' + text + ')'
        elif isinstance(node, BooleanLiteral):
            text = 'true' if node.value else 'false'
        elif isinstance(node, Omitted):
            return ''
        else:
            raise TypeError(f"cannot render replacement variant {type(node).__name__}")

        # keep tokens apart: return!![] -> return true
        if start > 0 and _IDENT_CHAR.match(self.source[start - 1]) and _IDENT_CHAR.match(text[0]):
            text = ' ' + text
        if end < len(self.source) and _IDENT_CHAR.match(self.source[end]) and _IDENT_CHAR.match(text[-1]):
            text = text + ' '
        return text


def parse_program(source: str) -> Program:
    """
    Parse JavaScript source into a Program arena

    Tries script goal first, then module goal.

    Raises:
        ParseFailure: source is not valid JavaScript, or too deeply nested
    """
    try:
        tree = esprima.parseScript(source, {'range': True})
    except Exception as script_error:
        try:
            tree = esprima.parseModule(source, {'range': True})
        except Exception:
            raise ParseFailure(str(script_error)) from script_error

    try:
        return _build_program(source, tree.toDict())
    except RecursionError as e:
        raise ParseFailure("syntax tree too deep") from e


def _child_dicts(d: Dict) -> Iterator[Dict]:
    for key, value in d.items():
        if key in _NON_CHILD_KEYS:
            continue
        if isinstance(value, dict) and 'type' in value:
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, dict) and 'type' in item:
                    yield item


def _pattern_names(d: Optional[Dict]) -> List[str]:
    if not d:
        return []
    kind = d.get('type')
    if kind == 'Identifier':
        return [d['name']]
    if kind == 'AssignmentPattern':
        return _pattern_names(d.get('left'))
    if kind == 'RestElement':
        return _pattern_names(d.get('argument'))
    if kind == 'ArrayPattern':
        return [name for el in d.get('elements') or [] for name in _pattern_names(el)]
    if kind == 'ObjectPattern':
        names = []
        for prop in d.get('properties') or []:
            if prop.get('type') == 'RestElement':
                names.extend(_pattern_names(prop))
            else:
                names.extend(_pattern_names(prop.get('value')))
        return names
    return []


def _build_program(source: str, root: Dict) -> Program:
    # pass 1: assign pre-order ids without recursion
    order = []
    ids: Dict[int, int] = {}
    stack = [(root, None)]
    while stack:
        d, parent = stack.pop()
        ids[id(d)] = len(order)
        order.append((d, parent))
        stack.extend((kid, ids[id(d)]) for kid in reversed(list(_child_dicts(d))))

    # pass 2: materialize variants
    nodes = [_make_node(d, node_id, parent, ids) for node_id, (d, parent) in enumerate(order)]
    return Program(source, nodes)


def _make_node(d: Dict, node_id: int, parent: Optional[int], ids: Dict[int, int]) -> Node:
    kind = d['type']
    span = tuple(d.get('range') or (0, 0))

    def ref(key):
        value = d.get(key)
        return ids[id(value)] if isinstance(value, dict) and 'type' in value else None

    if kind == 'Literal' and not d.get('regex'):
        value = d.get('value')
        if isinstance(value, str):
            return StringLiteral(node_id, parent, span, value)
        if isinstance(value, bool):
            return BooleanLiteral(node_id, parent, span, value)
        if isinstance(value, (int, float)):
            return NumberLiteral(node_id, parent, span, value)
    elif kind == 'Identifier':
        return Identifier(node_id, parent, span, d['name'])
    elif kind == 'ArrayExpression':
        elements = [ids[id(el)] if isinstance(el, dict) else None for el in d.get('elements') or []]
        return ArrayLiteral(node_id, parent, span, elements)
    elif kind == 'MemberExpression':
        return MemberAccess(node_id, parent, span, ref('object'), ref('property'), bool(d.get('computed')))
    elif kind == 'CallExpression':
        return Call(node_id, parent, span, ref('callee'), [ids[id(a)] for a in d.get('arguments') or []])
    elif kind == 'BinaryExpression':
        return BinaryOp(node_id, parent, span, d['operator'], ref('left'), ref('right'))
    elif kind == 'UnaryExpression':
        return UnaryOp(node_id, parent, span, d['operator'], ref('argument'))
    elif kind == 'VariableDeclarator':
        return Declarator(node_id, parent, span, ref('id'), ref('init'))
    elif kind in FUNCTION_KINDS:
        name = d['id'].get('name') if isinstance(d.get('id'), dict) else None
        params = d.get('params') or []
        param_names = [n for p in params for n in _pattern_names(p)]
        return Function(node_id, parent, span, kind, name,
                        [ids[id(p)] for p in params], param_names, ref('body'))

    return Opaque(node_id, parent, span, kind, [ids[id(kid)] for kid in _child_dicts(d)])
