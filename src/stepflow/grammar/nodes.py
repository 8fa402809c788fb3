"""
Syntax tree node set.

A closed set of dataclasses. Each class lists the fields that hold child
nodes in ``child_slots``; traversal goes through those slots only, and
dispatch is by class name (see NodeVisitor).

Builders may attach ``span`` (start, end) source offsets to any node.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterator, List, Optional, Tuple


class Node:
    """Base class for all tree nodes."""

    child_slots: ClassVar[Tuple[str, ...]] = ()
    span: Optional[Tuple[int, int]] = None


# ============================================================
# PROGRAM AND STATEMENTS
# ============================================================


@dataclass
class Program(Node):
    body: List[Node] = field(default_factory=list)
    dialect: str = "script"

    child_slots: ClassVar[Tuple[str, ...]] = ("body",)


@dataclass
class VariableDeclarator(Node):
    id: Node
    init: Optional[Node] = None

    child_slots: ClassVar[Tuple[str, ...]] = ("id", "init")


@dataclass
class VariableDeclaration(Node):
    kind: str
    declarations: List[VariableDeclarator] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("declarations",)


@dataclass
class BlockStatement(Node):
    body: List[Node] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("body",)


@dataclass
class FunctionDeclaration(Node):
    name: str
    params: List[Node]
    body: BlockStatement
    is_async: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("params", "body")


@dataclass
class ImportDeclaration(Node):
    source: str


@dataclass
class ExportNamedDeclaration(Node):
    """``export const ...`` / ``export function ...``; declaration is None for ``export { a }``."""

    declaration: Optional[Node] = None

    child_slots: ClassVar[Tuple[str, ...]] = ("declaration",)


@dataclass
class ExportDefaultDeclaration(Node):
    declaration: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("declaration",)


@dataclass
class ReturnStatement(Node):
    argument: Optional[Node] = None

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass
class IfStatement(Node):
    test: Node
    consequent: Node
    alternate: Optional[Node] = None

    child_slots: ClassVar[Tuple[str, ...]] = ("test", "consequent", "alternate")


@dataclass
class ExpressionStatement(Node):
    expression: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("expression",)


@dataclass
class ThrowStatement(Node):
    argument: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass
class ForStatement(Node):
    """Classic and for-of/for-in loops; ``head`` holds whatever the header contains."""

    head: List[Node]
    body: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("head", "body")


@dataclass
class WhileStatement(Node):
    test: Node
    body: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("test", "body")


@dataclass
class EmptyStatement(Node):
    pass


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Identifier(Node):
    name: str


@dataclass
class Literal(Node):
    """String, number, boolean, null or regex literal.

    ``value`` is the cooked Python value (None for null and regex).
    """

    value: Any
    raw: str


@dataclass
class TemplateLiteral(Node):
    raw: str
    cooked: Optional[str] = None

    @property
    def is_simple(self) -> bool:
        return self.cooked is not None


@dataclass
class ThisExpression(Node):
    pass


@dataclass
class ArrayExpression(Node):
    elements: List[Optional[Node]] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("elements",)


@dataclass
class Property(Node):
    key: Node
    value: Node
    computed: bool = False
    shorthand: bool = False
    method: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("key", "value")


@dataclass
class ObjectExpression(Node):
    properties: List[Node] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("properties",)


@dataclass
class SpreadElement(Node):
    argument: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass
class AssignmentPattern(Node):
    left: Node
    right: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("left", "right")


@dataclass
class RestElement(Node):
    argument: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass
class ArrowFunctionExpression(Node):
    params: List[Node]
    body: Node
    is_async: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("params", "body")

    @property
    def has_block_body(self) -> bool:
        return isinstance(self.body, BlockStatement)


@dataclass
class FunctionExpression(Node):
    name: Optional[str]
    params: List[Node]
    body: BlockStatement
    is_async: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("params", "body")


@dataclass
class BinaryExpression(Node):
    operator: str
    left: Node
    right: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("left", "right")


@dataclass
class LogicalExpression(Node):
    operator: str
    left: Node
    right: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("left", "right")


@dataclass
class UnaryExpression(Node):
    operator: str
    argument: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass
class UpdateExpression(Node):
    operator: str
    argument: Node
    prefix: bool

    child_slots: ClassVar[Tuple[str, ...]] = ("argument",)


@dataclass
class ConditionalExpression(Node):
    test: Node
    consequent: Node
    alternate: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("test", "consequent", "alternate")


@dataclass
class AssignmentExpression(Node):
    operator: str
    left: Node
    right: Node

    child_slots: ClassVar[Tuple[str, ...]] = ("left", "right")


@dataclass
class SequenceExpression(Node):
    expressions: List[Node]

    child_slots: ClassVar[Tuple[str, ...]] = ("expressions",)


@dataclass
class MemberExpression(Node):
    object: Node
    property: Node
    computed: bool = False
    optional: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("object", "property")


@dataclass
class CallExpression(Node):
    callee: Node
    arguments: List[Node] = field(default_factory=list)
    optional: bool = False

    child_slots: ClassVar[Tuple[str, ...]] = ("callee", "arguments")


@dataclass
class NewExpression(Node):
    callee: Node
    arguments: List[Node] = field(default_factory=list)

    child_slots: ClassVar[Tuple[str, ...]] = ("callee", "arguments")


@dataclass
class TaggedTemplateExpression(Node):
    tag: Node
    quasi: TemplateLiteral

    child_slots: ClassVar[Tuple[str, ...]] = ("tag", "quasi")


# ============================================================
# TRAVERSAL
# ============================================================


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield direct children in slot order, skipping None and array holes."""
    for slot in node.child_slots:
        value = getattr(node, slot)
        if isinstance(value, list):
            for item in value:
                if item is not None:
                    yield item
        elif value is not None:
            yield value


class NodeVisitor:
    """
    Dispatches ``visit_<ClassName>`` for each node, falling back to
    ``generic_visit`` which walks the child slots.
    """

    def visit(self, node: Node) -> Any:
        method = getattr(self, "visit_" + type(node).__name__, self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> None:
        for child in iter_child_nodes(node):
            self.visit(child)


def property_name(prop: Property) -> Optional[str]:
    """Static key of a non-computed property, or None."""
    if prop.computed:
        return None
    key = prop.key
    if isinstance(key, Identifier):
        return key.name
    if isinstance(key, Literal) and isinstance(key.value, (str, int, float)):
        if isinstance(key.value, float) and key.value.is_integer():
            return str(int(key.value))
        return str(key.value)
    return None


def object_property(obj: ObjectExpression, name: str) -> Optional[Property]:
    """First non-computed property named ``name``."""
    for prop in obj.properties:
        if isinstance(prop, Property) and property_name(prop) == name:
            return prop
    return None
