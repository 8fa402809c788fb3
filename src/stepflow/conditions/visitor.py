"""
Condition visitor: expression nodes -> ConditionRule / ConditionGroup.

Logical operators become groups (flattened when the logic matches),
comparisons become rules. Ids are numbered per visitor instance, so a fresh
visitor per parse gives deterministic ids.
"""

from dataclasses import replace
from typing import List

from ..grammar.nodes import (
    BinaryExpression,
    CallExpression,
    ConditionalExpression,
    Identifier,
    IfStatement,
    Literal,
    LogicalExpression,
    MemberExpression,
    Node,
    NodeVisitor,
    UnaryExpression,
)
from .extractors import ConditionExtractionError, field_path, literal_value
from .models import (
    JS_OP_TO_RULE_OP,
    LOGIC_AND,
    LOGIC_OR,
    ConditionGroup,
    ConditionNode,
    ConditionRule,
    RuleOperator,
    value_type_of,
)

_REVERSED_OPERATORS = {
    ">": "<",
    "<": ">",
    ">=": "<=",
    "<=": ">=",
}


class ConditionVisitor(NodeVisitor):
    """
    Usage:
        result = ConditionVisitor().visit(expression_node)
    """

    def __init__(self):
        self._rule_count = 0
        self._group_count = 0

    def next_rule_id(self) -> str:
        self._rule_count += 1
        return f"rule-{self._rule_count}"

    def next_group_id(self) -> str:
        self._group_count += 1
        return f"group-{self._group_count}"

    def generic_visit(self, node: Node) -> ConditionNode:
        raise ConditionExtractionError(f"Unsupported node type: {type(node).__name__}")

    # ------------------------------------------------------------------
    # Composite nodes
    # ------------------------------------------------------------------

    def visit_LogicalExpression(self, node: LogicalExpression) -> ConditionGroup:
        left = self.visit(node.left)
        right = self.visit(node.right)
        logic = LOGIC_AND if node.operator == "&&" else LOGIC_OR
        return self._flatten(logic, left, right)

    def visit_ConditionalExpression(self, node: ConditionalExpression) -> ConditionNode:
        return self.visit(node.test)

    def visit_IfStatement(self, node: IfStatement) -> ConditionNode:
        return self.visit(node.test)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def visit_BinaryExpression(self, node: BinaryExpression) -> ConditionRule:
        field_node, value_node, operator = node.left, node.right, node.operator

        # 'dev' === context.flowData.type
        if isinstance(node.right, MemberExpression) and isinstance(node.left, (Literal, Identifier)):
            field_node, value_node = node.right, node.left
            operator = _REVERSED_OPERATORS.get(operator, operator)

        rule_operator = JS_OP_TO_RULE_OP.get(operator)
        if rule_operator is None:
            raise ConditionExtractionError(f"Unsupported binary operator: {operator}")

        field = field_path(field_node)
        if not field:
            raise ConditionExtractionError(
                f"Could not extract field from: {type(field_node).__name__}"
            )

        value = literal_value(value_node)
        return ConditionRule(
            id=self.next_rule_id(),
            field=field,
            operator=rule_operator,
            value=value,
            value_type=value_type_of(value),
        )

    def visit_MemberExpression(self, node: MemberExpression) -> ConditionRule:
        return ConditionRule(id=self.next_rule_id(), field=field_path(node), operator=RuleOperator.EXISTS)

    def visit_Identifier(self, node: Identifier) -> ConditionRule:
        lowered = node.name.lower()
        if lowered in ("true", "false"):
            return ConditionRule(
                id=self.next_rule_id(),
                field="",
                operator=RuleOperator.EQUALS if lowered == "true" else RuleOperator.NOT_EQUALS,
                value=lowered == "true",
                value_type="boolean",
            )
        field = node.name if "env" in lowered else f"flowData.{node.name}"
        return ConditionRule(id=self.next_rule_id(), field=field, operator=RuleOperator.EXISTS)

    def visit_Literal(self, node: Literal) -> ConditionRule:
        return ConditionRule(
            id=self.next_rule_id(),
            field="",
            operator=RuleOperator.EQUALS,
            value=node.value,
            value_type=value_type_of(node.value),
        )

    def visit_CallExpression(self, node: CallExpression) -> ConditionRule:
        return self._includes_rule(node, RuleOperator.CONTAINS)

    def visit_UnaryExpression(self, node: UnaryExpression) -> ConditionRule:
        if node.operator != "!":
            raise ConditionExtractionError(f"Unsupported unary operator: {node.operator}")

        argument = node.argument
        if isinstance(argument, CallExpression):
            return self._includes_rule(argument, RuleOperator.NOT_CONTAINS)
        if isinstance(argument, MemberExpression):
            return ConditionRule(
                id=self.next_rule_id(), field=field_path(argument), operator=RuleOperator.NOT_EXISTS
            )
        if isinstance(argument, Identifier):
            rule = self.visit_Identifier(argument)
            if rule.operator == RuleOperator.EXISTS:
                return replace(rule, operator=RuleOperator.NOT_EXISTS)
        raise ConditionExtractionError("Unsupported negation")

    def _includes_rule(self, node: CallExpression, operator: RuleOperator) -> ConditionRule:
        callee = node.callee
        if (
            not isinstance(callee, MemberExpression)
            or callee.computed
            or callee.property.name != "includes"
            or len(node.arguments) != 1
        ):
            raise ConditionExtractionError("Only .includes(value) calls are supported")

        field = field_path(callee.object)
        if not field:
            raise ConditionExtractionError("Could not extract field from includes() receiver")

        value = literal_value(node.arguments[0])
        return ConditionRule(
            id=self.next_rule_id(),
            field=field,
            operator=operator,
            value=value,
            value_type=value_type_of(value),
        )

    # ------------------------------------------------------------------
    # Flattening
    # ------------------------------------------------------------------

    def _flatten(self, logic: str, left: ConditionNode, right: ConditionNode) -> ConditionGroup:
        left_is_rule = isinstance(left, ConditionRule)
        right_is_rule = isinstance(right, ConditionRule)

        if left_is_rule and right_is_rule:
            return ConditionGroup(id=self.next_group_id(), logic=logic, rules=[left, right])

        if not left_is_rule and right_is_rule and left.logic == logic:
            return replace(left, rules=left.rules + [right])

        if not right_is_rule and left_is_rule and right.logic == logic:
            return replace(right, rules=[left] + right.rules)

        if not left_is_rule and not right_is_rule and left.logic == logic == right.logic:
            return ConditionGroup(id=self.next_group_id(), logic=logic, rules=left.rules + right.rules)

        # Mixed logic: the nesting is lost, rules are pooled under the outer operator
        return ConditionGroup(
            id=self.next_group_id(),
            logic=logic,
            rules=_rules_of(left) + _rules_of(right),
        )


def _rules_of(item: ConditionNode) -> List[ConditionRule]:
    if isinstance(item, ConditionRule):
        return [item]
    return list(item.rules)
