"""
Expression stringifier.

Renders the small set of expression shapes that appear in step predicates
(identifiers, literals, member access, calls, unary and binary operators) back
to compact source text. Anything else becomes COMPLEX_EXPRESSION_PLACEHOLDER.
"""

from typing import List

from ..models import (
    COMPLEX_BODY_PLACEHOLDER,
    COMPLEX_EXPRESSION_PLACEHOLDER,
    EXPRESSION_BODY_PLACEHOLDER,
)
from .nodes import (
    ArrayExpression,
    ArrowFunctionExpression,
    AssignmentPattern,
    BinaryExpression,
    BlockStatement,
    CallExpression,
    FunctionExpression,
    Identifier,
    Literal,
    LogicalExpression,
    MemberExpression,
    Node,
    ObjectExpression,
    Property,
    RestElement,
    SpreadElement,
    TemplateLiteral,
    ThisExpression,
    UnaryExpression,
)

# Binding power of binary and logical operators
_PRECEDENCE = {
    "??": 1,
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6, "!=": 6, "===": 6, "!==": 6,
    "<": 7, ">": 7, "<=": 7, ">=": 7, "in": 7, "instanceof": 7,
    "<<": 8, ">>": 8, ">>>": 8,
    "+": 9, "-": 9,
    "*": 10, "/": 10, "%": 10,
    "**": 11,
}

_WORD_OPERATORS = {"typeof", "void", "delete", "await"}

_OPERATOR_TYPES = (BinaryExpression, LogicalExpression)
_ATOMIC_TYPES = (Identifier, Literal, TemplateLiteral, ThisExpression, MemberExpression, CallExpression)


def render_expression(node: Node) -> str:
    """Source text for ``node``, or the complex-expression placeholder."""
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, Literal):
        return _render_literal(node)
    if isinstance(node, TemplateLiteral):
        return node.raw
    if isinstance(node, ThisExpression):
        return "this"
    if isinstance(node, MemberExpression):
        return _render_member(node)
    if isinstance(node, CallExpression):
        callee = _render_operand(node.callee)
        args = ", ".join(_render_argument(arg) for arg in node.arguments)
        return f"{callee}{'?.' if node.optional else ''}({args})"
    if isinstance(node, UnaryExpression):
        return _render_unary(node)
    if isinstance(node, _OPERATOR_TYPES):
        return _render_operator(node)
    return COMPLEX_EXPRESSION_PLACEHOLDER


def render_params(params: List[Node]) -> str:
    """Parameter list text without the surrounding parentheses."""
    return ", ".join(_render_param(param) for param in params)


def render_function(node: Node) -> str:
    """
    Condition text for an arrow function or function expression.

    Block bodies collapse to the complex-body placeholder; binary, logical
    and member bodies are rendered; any other body collapses to the
    expression-body placeholder.
    """
    if not isinstance(node, (ArrowFunctionExpression, FunctionExpression)):
        return COMPLEX_EXPRESSION_PLACEHOLDER

    params = render_params(node.params)
    body = node.body
    if isinstance(body, BlockStatement):
        return COMPLEX_BODY_PLACEHOLDER.format(params=params)
    if isinstance(body, _OPERATOR_TYPES + (MemberExpression,)):
        return f"({params}) => {render_expression(body)}"
    return EXPRESSION_BODY_PLACEHOLDER.format(params=params)


# ============================================================
# INTERNALS
# ============================================================


def _render_literal(node: Literal) -> str:
    value = node.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = (
            value.replace("\\", "\\\\")
            .replace("'", "\\'")
            .replace("\n", "\\n")
        )
        return f"'{escaped}'"
    # numbers, null and regexes keep their source text
    return node.raw


def _render_member(node: MemberExpression) -> str:
    obj = _render_operand(node.object)
    if node.computed:
        prop = render_expression(node.property)
        return f"{obj}{'?.' if node.optional else ''}[{prop}]"
    return f"{obj}{'?.' if node.optional else '.'}{node.property.name}"


def _render_operand(node: Node) -> str:
    text = render_expression(node)
    if isinstance(node, _ATOMIC_TYPES) or text == COMPLEX_EXPRESSION_PLACEHOLDER:
        return text
    return f"({text})"


def _render_argument(node: Node) -> str:
    if isinstance(node, SpreadElement):
        return "..." + render_expression(node.argument)
    return render_expression(node)


def _render_unary(node: UnaryExpression) -> str:
    argument = render_expression(node.argument)
    if isinstance(node.argument, _OPERATOR_TYPES):
        argument = f"({argument})"
    if node.operator in _WORD_OPERATORS:
        return f"{node.operator} {argument}"
    return f"{node.operator}{argument}"


def _render_operator(node: Node) -> str:
    precedence = _PRECEDENCE.get(node.operator, 0)
    left = render_expression(node.left)
    right = render_expression(node.right)

    if _needs_parens(node.left, precedence, right_side=False, operator=node.operator):
        left = f"({left})"
    if _needs_parens(node.right, precedence, right_side=True, operator=node.operator):
        right = f"({right})"
    return f"{left} {node.operator} {right}"


def _needs_parens(child: Node, precedence: int, right_side: bool, operator: str) -> bool:
    if not isinstance(child, _OPERATOR_TYPES):
        return False
    child_precedence = _PRECEDENCE.get(child.operator, 0)
    if child_precedence < precedence:
        return True
    if child_precedence == precedence:
        # ** is right-associative, everything else left-associative
        return not right_side if operator == "**" else right_side
    return False


def _render_param(node: Node) -> str:
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, AssignmentPattern):
        return f"{_render_param(node.left)} = {render_expression(node.right)}"
    if isinstance(node, RestElement):
        return "..." + _render_param(node.argument)
    if isinstance(node, ObjectExpression):
        return "{ " + ", ".join(_render_pattern_property(p) for p in node.properties) + " }"
    if isinstance(node, ArrayExpression):
        items = (_render_param(el) if el is not None else "" for el in node.elements)
        return "[" + ", ".join(items) + "]"
    return COMPLEX_EXPRESSION_PLACEHOLDER


def _render_pattern_property(prop: Node) -> str:
    if isinstance(prop, SpreadElement):
        return "..." + _render_param(prop.argument)
    if not isinstance(prop, Property):
        return COMPLEX_EXPRESSION_PLACEHOLDER
    if prop.shorthand:
        return _render_param(prop.value)
    key = render_expression(prop.key)
    if prop.computed:
        key = f"[{key}]"
    return f"{key}: {_render_param(prop.value)}"
