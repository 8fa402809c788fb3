"""
ConditionParser - step condition source <-> editable rule groups.

    parser = ConditionParser()
    groups = parser.parse("(context) => context.flowData.role === 'admin'")
    code = parser.generate(groups)
"""

import logging
import re
from typing import List, Optional

from lark.exceptions import UnexpectedInput

from ..grammar import SCRIPT, ScriptParser, TreeBuildError
from ..logging_config import NULL_LOGGER
from .extractors import ConditionExtractionError, is_function_statement, select_condition_expression
from .generator import CodeGenerator
from .models import LOGIC_AND, ConditionGroup, ConditionNode, ConditionRule, empty_result
from .visitor import ConditionVisitor

_UNSAFE_NAMES_RE = re.compile(r"eval|Function|setTimeout|setInterval")
_CONDITION_SYNTAX_RE = re.compile(r"[\w.]|===|!==|==|!=|>|<|\?|\(|\)|!")

MIN_CONDITION_LENGTH = 3


class ConditionParser:
    """
    Parses condition source text into ConditionGroups and generates code
    back from them. ``parse`` never raises; unusable input gives the
    ``empty-condition`` group.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or NULL_LOGGER
        self.generator = CodeGenerator()

    @staticmethod
    def sanitize(text: str) -> str:
        """Remove references to code-evaluating globals."""
        return _UNSAFE_NAMES_RE.sub("", text)

    @staticmethod
    def is_valid_input(text: str) -> bool:
        trimmed = text.strip()
        if len(trimmed) < MIN_CONDITION_LENGTH:
            return False
        return _CONDITION_SYNTAX_RE.search(trimmed) is not None

    def parse(self, text: str) -> List[ConditionGroup]:
        """
        Convert condition source into rule groups.

        Args:
            text: Arrow function, function expression/declaration, or a bare expression

        Returns:
            One or more ConditionGroups
        """
        if not isinstance(text, str):
            return empty_result()

        code = self.sanitize(text)
        if not self.is_valid_input(code):
            self.logger.debug("Condition input rejected: %r", text[:80])
            return empty_result()

        try:
            program = ScriptParser().parse(code.strip(), dialect=SCRIPT)
            statement = program.body[0] if program.body else None
            expression = select_condition_expression(statement) if statement is not None else None
            if expression is None:
                self.logger.debug("No condition expression found")
                return empty_result()

            visitor = ConditionVisitor()
            result = visitor.visit(expression)
        except (UnexpectedInput, TreeBuildError) as e:
            self.logger.debug("Condition could not be parsed: %s", e)
            return empty_result()
        except ConditionExtractionError as e:
            self.logger.debug("Condition not representable as rules: %s", e)
            return empty_result()
        except Exception as e:
            self.logger.warning("Condition parsing failed: %s", e)
            return empty_result()

        return self._to_groups(result, visitor, drop_blank_fields=is_function_statement(statement))

    def generate(self, groups: List[ConditionGroup], wrap_in_function: bool = True) -> str:
        """Predicate source for ``groups``."""
        return self.generator.generate(groups, wrap_in_function=wrap_in_function)

    @staticmethod
    def _to_groups(result: ConditionNode, visitor: ConditionVisitor,
                   drop_blank_fields: bool) -> List[ConditionGroup]:
        if isinstance(result, ConditionRule):
            group = ConditionGroup(id=visitor.next_group_id(), logic=LOGIC_AND, rules=[result])
        else:
            group = result
        if drop_blank_fields:
            group.rules = [rule for rule in group.rules if rule.field]
        return [group]
