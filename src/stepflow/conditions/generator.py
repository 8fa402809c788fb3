"""ConditionGroup list -> predicate source text."""

from typing import Any, List

from .models import FIELD_ACCESS_PREFIX, LOGIC_OPERATOR_MAP, ConditionGroup, ConditionRule, RuleOperator


class CodeGenerator:
    """
    Renders rule groups as an arrow function over ``context.flowData``.

    Groups are joined with ``&&``; rules inside a group with the group's
    operator. An empty input renders as ``() => true``.
    """

    def generate(self, groups: List[ConditionGroup], wrap_in_function: bool = True) -> str:
        if not groups or all(not group.rules for group in groups):
            return "() => true"

        code = " && ".join(self._group_code(group) for group in groups)
        return f"(context) => {code}" if wrap_in_function else code

    def _group_code(self, group: ConditionGroup) -> str:
        if not group.rules:
            return "true"
        joiner = f" {LOGIC_OPERATOR_MAP.get(group.logic, '&&')} "
        return "(" + joiner.join(self._rule_code(rule) for rule in group.rules) + ")"

    def _rule_code(self, rule: ConditionRule) -> str:
        access = f"{FIELD_ACCESS_PREFIX}{rule.field}"
        value = _format_value(rule.value, rule.value_type)
        operator = rule.operator

        if operator == RuleOperator.EQUALS:
            return f"{access} === {value}"
        if operator == RuleOperator.NOT_EQUALS:
            return f"{access} !== {value}"
        if operator == RuleOperator.CONTAINS:
            return f"{access}?.includes({value})"
        if operator == RuleOperator.NOT_CONTAINS:
            return f"!{access}?.includes({value})"
        if operator == RuleOperator.GREATER_THAN:
            return f"{access} > {value}"
        if operator == RuleOperator.LESS_THAN:
            return f"{access} < {value}"
        if operator == RuleOperator.EXISTS:
            return f"{access} !== undefined && {access} !== null"
        if operator == RuleOperator.NOT_EXISTS:
            return f"({access} === undefined || {access} === null)"
        return "true"


def _format_value(value: Any, value_type: str) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value_type == "string":
        return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
