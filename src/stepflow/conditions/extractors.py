"""
Node readers used by the condition visitor.

- field_path: member chain -> "a.b[0]" with the context/flowData prefix removed
- literal_value: value side of a comparison -> Python value
- select_condition_expression: the expression worth turning into rules
"""

import json
from typing import Any, List, Optional

from ..grammar.nodes import (
    ArrayExpression,
    ArrowFunctionExpression,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    ConditionalExpression,
    ExpressionStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    MemberExpression,
    Node,
    ObjectExpression,
    Property,
    ReturnStatement,
    TemplateLiteral,
    ThisExpression,
    UnaryExpression,
    property_name,
)


class ConditionExtractionError(ValueError):
    """Raised when a node cannot be read as part of a condition."""


# ============================================================
# FIELDS
# ============================================================


def field_path(node: Node) -> str:
    """
    Dotted path of a member chain.

    ``context.flowData.user.role`` -> ``user.role``; computed keys render as
    ``[0]`` or ``['key']``. Returns "" when the chain has no usable base.
    """
    segments: List[str] = []
    base = ""
    current = node
    while isinstance(current, MemberExpression):
        segments.insert(0, _member_segment(current))
        current = current.object
    if isinstance(current, Identifier):
        base = current.name
    elif isinstance(current, ThisExpression):
        base = "this"

    path = base
    for segment in segments:
        if not segment:
            continue
        if segment.startswith("["):
            path += segment
        else:
            path = f"{path}.{segment}" if path else segment
    return _normalize_field_path(path)


def _member_segment(node: MemberExpression) -> str:
    prop = node.property
    if not node.computed:
        return prop.name
    if isinstance(prop, Literal) and prop.value is not None:
        return f"[{_format_key(prop.value)}]"
    if isinstance(prop, Identifier):
        return f"['{prop.name}']"
    if isinstance(prop, TemplateLiteral) and prop.is_simple:
        return f"['{prop.cooked}']"
    return ""


def _format_key(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _normalize_field_path(path: str) -> str:
    if path.startswith("context."):
        path = path[len("context."):]
        if path.startswith("flowData."):
            path = path[len("flowData."):]
    return path


# ============================================================
# VALUES
# ============================================================

_SPECIAL_IDENTIFIERS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}

_SAFE_MATH_OPERATORS = ("+", "-", "*", "/")


def literal_value(node: Node) -> Any:
    """
    Python value for the literal side of a comparison.

    Raises:
        ConditionExtractionError: For anything that is not literal-like
    """
    if isinstance(node, Literal):
        if node.value is None and node.raw != "null":
            return node.raw
        return node.value
    if isinstance(node, Identifier):
        return _SPECIAL_IDENTIFIERS.get(node.name, node.name)
    if isinstance(node, TemplateLiteral):
        if node.is_simple:
            return node.cooked
        return node.raw[1:-1]
    if isinstance(node, UnaryExpression) and node.operator == "-":
        value = literal_value(node.argument)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return -value
        raise ConditionExtractionError("Negation of a non-number")
    if isinstance(node, BinaryExpression):
        return _math_value(node)
    if isinstance(node, ArrayExpression):
        return json.dumps([literal_value(el) for el in node.elements if el is not None])
    if isinstance(node, ObjectExpression):
        obj = {}
        for prop in node.properties:
            if isinstance(prop, Property) and isinstance(prop.key, Identifier):
                obj[property_name(prop)] = literal_value(prop.value)
        return json.dumps(obj)
    raise ConditionExtractionError(f"Unsupported literal node: {type(node).__name__}")


def _math_value(node: BinaryExpression) -> Any:
    if node.operator not in _SAFE_MATH_OPERATORS:
        raise ConditionExtractionError(f"Unsafe math operator: {node.operator}")

    left = literal_value(node.left)
    right = literal_value(node.right)
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (left, right)):
        raise ConditionExtractionError("Invalid operands for math expression")

    if node.operator == "+":
        return left + right
    if node.operator == "-":
        return left - right
    if node.operator == "*":
        return left * right
    if right == 0:
        raise ConditionExtractionError("Math evaluation failed")
    return left / right


# ============================================================
# EXPRESSION SELECTION
# ============================================================

CONDITION_TYPES = (
    BinaryExpression,
    LogicalExpression,
    CallExpression,
    UnaryExpression,
    ConditionalExpression,
    MemberExpression,
    Identifier,
)

_COMPLEX_TYPES = (
    BinaryExpression,
    LogicalExpression,
    CallExpression,
    UnaryExpression,
    ConditionalExpression,
    MemberExpression,
)


def is_function_statement(statement: Node) -> bool:
    """True for a function declaration or a statement holding a function expression."""
    if isinstance(statement, FunctionDeclaration):
        return True
    return isinstance(statement, ExpressionStatement) and isinstance(
        statement.expression, (ArrowFunctionExpression, FunctionExpression)
    )


def select_condition_expression(statement: Node) -> Optional[Node]:
    """
    Pick the expression that carries the condition.

    - arrow with expression body: the body (when it is condition-shaped)
    - block-bodied function: see _from_block
    - any other expression statement: its expression
    """
    if isinstance(statement, FunctionDeclaration):
        return _from_block(statement.body)
    if not isinstance(statement, ExpressionStatement):
        return None

    expression = statement.expression
    if isinstance(expression, ArrowFunctionExpression):
        if expression.has_block_body:
            return _from_block(expression.body)
        if isinstance(expression.body, CONDITION_TYPES):
            return expression.body
        return None
    if isinstance(expression, FunctionExpression):
        return _from_block(expression.body)
    return expression


def _from_block(block: BlockStatement) -> Optional[Node]:
    """
    Block bodies, in order of preference:
        1. tests of ``if`` statements whose branches return (OR-combined)
        2. a ``return`` of a complex condition
        3. the first ``if`` test that is complex or a bare identifier
        4. the first ``return`` argument
    """
    if_statements = [s for s in block.body if isinstance(s, IfStatement)]
    returns = [s for s in block.body if isinstance(s, ReturnStatement)]

    routing = [
        s.test for s in if_statements
        if _returns_in(s.consequent) or _returns_in_alternate(s.alternate)
    ]
    if routing:
        combined = routing[0]
        for test in routing[1:]:
            combined = LogicalExpression("||", combined, test)
        return combined

    for ret in returns:
        if ret.argument is not None and isinstance(ret.argument, _COMPLEX_TYPES):
            return ret.argument

    for s in if_statements:
        if isinstance(s.test, _COMPLEX_TYPES + (Identifier,)):
            return s.test

    for ret in returns:
        if ret.argument is not None:
            return ret.argument

    return None


def _returns_in(statement: Optional[Node]) -> bool:
    if isinstance(statement, ReturnStatement):
        return True
    if isinstance(statement, BlockStatement):
        return any(isinstance(s, ReturnStatement) for s in statement.body)
    return False


def _returns_in_alternate(statement: Optional[Node]) -> bool:
    if isinstance(statement, IfStatement):
        return _returns_in(statement.consequent)
    return _returns_in(statement)
