"""Rule and group types for editable step conditions."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class RuleOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


LOGIC_AND = "AND"
LOGIC_OR = "OR"

LOGIC_OPERATOR_MAP = {
    LOGIC_AND: "&&",
    LOGIC_OR: "||",
}

# Comparison operator -> rule operator. Non-strict and inclusive forms
# collapse onto the nearest rule operator.
JS_OP_TO_RULE_OP = {
    "===": RuleOperator.EQUALS,
    "==": RuleOperator.EQUALS,
    "!==": RuleOperator.NOT_EQUALS,
    "!=": RuleOperator.NOT_EQUALS,
    ">": RuleOperator.GREATER_THAN,
    ">=": RuleOperator.GREATER_THAN,
    "<": RuleOperator.LESS_THAN,
    "<=": RuleOperator.LESS_THAN,
}

FIELD_ACCESS_PREFIX = "context.flowData?."

EMPTY_CONDITION_ID = "empty-condition"


@dataclass
class ConditionRule:
    """One comparison against a flow-data field."""

    id: str
    field: str
    operator: RuleOperator
    value: Any = None
    value_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "field": self.field,
            "operator": self.operator.value,
        }
        if self.value_type is not None:
            d["value"] = self.value
            d["valueType"] = self.value_type
        return d


@dataclass
class ConditionGroup:
    """Rules joined by a single logic operator."""

    id: str
    logic: str = LOGIC_AND
    rules: List[ConditionRule] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "logic": self.logic,
            "rules": [rule.to_dict() for rule in self.rules],
        }


ConditionNode = Union[ConditionRule, ConditionGroup]


def empty_result() -> List[ConditionGroup]:
    """The result returned for input that cannot be turned into rules."""
    return [ConditionGroup(id=EMPTY_CONDITION_ID, logic=LOGIC_AND, rules=[])]


def value_type_of(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)) and value == value:
        return "number"
    return "string"
