"""
Condition rules: parse a step's condition source into editable rule groups
and generate source back from them.
"""

from .generator import CodeGenerator
from .models import (
    EMPTY_CONDITION_ID,
    FIELD_ACCESS_PREFIX,
    JS_OP_TO_RULE_OP,
    LOGIC_AND,
    LOGIC_OR,
    ConditionGroup,
    ConditionRule,
    RuleOperator,
    empty_result,
)
from .parser import ConditionParser

__all__ = [
    "CodeGenerator",
    "ConditionGroup",
    "ConditionParser",
    "ConditionRule",
    "EMPTY_CONDITION_ID",
    "FIELD_ACCESS_PREFIX",
    "JS_OP_TO_RULE_OP",
    "LOGIC_AND",
    "LOGIC_OR",
    "RuleOperator",
    "empty_result",
]
