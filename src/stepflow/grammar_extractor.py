"""
Grammar-based step extraction (fallback strategy).

Used when the structural scan finds nothing. The preprocessed source is parsed
under several dialects; the resulting tree is searched for arrays that look
like step lists and their object literals are read field by field.
"""

import logging
import re
from typing import List, Optional, Tuple

from lark.exceptions import UnexpectedInput

from .config_loader import ParserConfig
from .grammar import MODULE, SCRIPT, NodeVisitor, Program, ScriptParser, TreeBuildError
from .grammar.nodes import (
    ArrayExpression,
    ArrowFunctionExpression,
    FunctionExpression,
    Identifier,
    Literal,
    Node,
    ObjectExpression,
    Property,
    TemplateLiteral,
    VariableDeclaration,
    VariableDeclarator,
    object_property,
    property_name,
)
from .grammar.render import render_function
from .logging_config import NULL_LOGGER
from .models import (
    FUNCTION_REFERENCE_PLACEHOLDER,
    NAVIGATION_FIELDS,
    ConditionFunctionTable,
    StepMeta,
    StepRecord,
    StepType,
    build_meta,
)
from .textscan import find_matching, split_top_level
from .validation import validate_steps

FRAGMENT = "fragment"

# camelCase key -> StepRecord field
NAVIGATION_KEYS = dict(zip(("nextStep", "previousStep", "skipToStep"), NAVIGATION_FIELDS))

_ARRAY_ASSIGNMENT_RE = re.compile(
    r"\b(?:const|let|var)\s+(?P<name>[A-Za-z_$][\w$]*)\s*(?::[^=;]+?)?=\s*(?=\[)"
)


# ============================================================
# FIELD READERS
# ============================================================


def string_value(node: Optional[Node]) -> Optional[str]:
    """Value of a string literal or substitution-free template, else None."""
    if isinstance(node, Literal) and isinstance(node.value, str):
        return node.value
    if isinstance(node, TemplateLiteral) and node.is_simple:
        return node.cooked
    return None


def is_null(node: Optional[Node]) -> bool:
    return isinstance(node, Literal) and node.value is None and node.raw == "null"


def condition_source(node: Node, functions: ConditionFunctionTable) -> Optional[str]:
    """Predicate text for a ``condition`` value node."""
    if isinstance(node, Identifier):
        if node.name in functions:
            return functions[node.name]
        return FUNCTION_REFERENCE_PLACEHOLDER.format(name=node.name)
    if isinstance(node, (ArrowFunctionExpression, FunctionExpression)):
        return render_function(node)
    return None


def read_meta(obj: ObjectExpression) -> Optional[StepMeta]:
    """Top-level ``title``/``description``, falling back to a nested ``meta`` object."""
    title = _property_string(obj, "title")
    description = _property_string(obj, "description")

    meta_prop = object_property(obj, "meta")
    if meta_prop is not None and isinstance(meta_prop.value, ObjectExpression):
        if title is None:
            title = _property_string(meta_prop.value, "title")
        if description is None:
            description = _property_string(meta_prop.value, "description")

    return build_meta(title, description)


def _property_string(obj: ObjectExpression, name: str) -> Optional[str]:
    prop = object_property(obj, name)
    return string_value(prop.value) if prop is not None else None


def read_step(obj: ObjectExpression, functions: ConditionFunctionTable) -> Optional[StepRecord]:
    """StepRecord for an object literal, or None when it has no usable id."""
    step_id = _property_string(obj, "id")
    if step_id is None or not step_id.strip():
        return None

    fields = {}
    for prop in obj.properties:
        if not isinstance(prop, Property):
            continue
        name = property_name(prop)
        value = prop.value

        if name in NAVIGATION_KEYS:
            if is_null(value):
                fields[NAVIGATION_KEYS[name]] = None
            else:
                text = string_value(value)
                if text is not None:
                    fields[NAVIGATION_KEYS[name]] = text
        elif name == "type":
            step_type = StepType.from_value(string_value(value))
            if step_type is not None:
                fields["type"] = step_type
        elif name == "isSkippable":
            if isinstance(value, Literal) and isinstance(value.value, bool):
                fields["is_skippable"] = value.value
        elif name == "condition":
            condition = condition_source(value, functions)
            if condition is not None:
                fields["condition"] = condition

    meta = read_meta(obj)
    if meta is not None:
        fields["meta"] = meta

    return StepRecord(id=step_id, **fields)


def has_id(node: Optional[Node]) -> bool:
    return isinstance(node, ObjectExpression) and object_property(node, "id") is not None


# ============================================================
# TREE SEARCH
# ============================================================


class StepArrayCollector(NodeVisitor):
    """
    Collects step-list arrays in traversal order.

    An array qualifies when it initializes a variable whose name contains the
    hint, or when enough of its object elements carry an ``id`` key.
    """

    def __init__(self, name_hint: str, step_like_ratio: float):
        self.name_hint = name_hint.lower()
        self.step_like_ratio = step_like_ratio
        self.arrays: List[ArrayExpression] = []
        self._seen = set()

    def collect(self, program: Program) -> List[ArrayExpression]:
        if program.dialect == FRAGMENT:
            for array in _fragment_arrays(program):
                self._add(array)
            return self.arrays
        self.visit(program)
        return self.arrays

    def _add(self, array: ArrayExpression) -> None:
        if id(array) not in self._seen:
            self._seen.add(id(array))
            self.arrays.append(array)

    def visit_VariableDeclarator(self, node: VariableDeclarator) -> None:
        if (
            isinstance(node.id, Identifier)
            and isinstance(node.init, ArrayExpression)
            and self.name_hint
            and self.name_hint in node.id.name.lower()
        ):
            self._add(node.init)
        self.generic_visit(node)

    def visit_ArrayExpression(self, node: ArrayExpression) -> None:
        if self._is_step_like(node):
            self._add(node)
        self.generic_visit(node)

    def _is_step_like(self, node: ArrayExpression) -> bool:
        objects = [el for el in node.elements if isinstance(el, ObjectExpression)]
        if not objects:
            return False
        with_id = sum(1 for obj in objects if has_id(obj))
        return with_id / len(objects) >= self.step_like_ratio


def _fragment_arrays(program: Program) -> List[ArrayExpression]:
    arrays = []
    for statement in program.body:
        if isinstance(statement, VariableDeclaration):
            for declarator in statement.declarations:
                if isinstance(declarator.init, ArrayExpression):
                    arrays.append(declarator.init)
    return arrays


# ============================================================
# EXTRACTOR
# ============================================================


class GrammarExtractor:
    """
    Parses preprocessed source and reads steps from the tree.

    Attempts, in order, until one yields steps:
        1. the whole text as a module
        2. the whole text as a script, when the module parse failed
        3. a single array assignment cut out of the text, parsed element by element

    No single parse is handed more than ``config.grammar_max_chars``
    characters, so large files go straight to the element-wise attempt.

    Usage:
        extractor = GrammarExtractor(logger, config)
        steps = extractor.extract(preprocess_source(text), functions)
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 config: Optional[ParserConfig] = None):
        self.logger = logger or NULL_LOGGER
        self.config = config or ParserConfig()

    def extract(self, preprocessed: str, functions: ConditionFunctionTable) -> List[StepRecord]:
        """
        Extract validated steps from preprocessed source.

        Returns:
            Steps in traversal order, or [] when no attempt yields any
        """
        try:
            for attempt, program in self._attempts(preprocessed):
                if program is None:
                    continue
                steps = self._steps_from_program(program, functions)
                if steps:
                    self.logger.debug("Grammar attempt '%s' produced %d steps", attempt, len(steps))
                    return steps
            return []
        except Exception as e:
            self.logger.warning("Grammar extraction failed: %s", e)
            return []

    def _attempts(self, text: str):
        program = self._parse(text, MODULE)
        yield MODULE, program
        # module accepts a superset of script
        if program is None:
            yield SCRIPT, self._parse(text, SCRIPT)
        yield FRAGMENT, self._parse_fragment(text)

    def _parse(self, text: str, dialect: str, label: Optional[str] = None) -> Optional[Program]:
        label = label or dialect
        limit = self.config.grammar_max_chars
        if len(text) > limit:
            self.logger.debug("%s parse skipped: %d characters (limit %d)", label, len(text), limit)
            return None
        try:
            return ScriptParser().parse(text, dialect=dialect)
        except UnexpectedInput as e:
            self.logger.debug(
                "%s parse failed at line %s, column %s",
                label, getattr(e, "line", "?"), getattr(e, "column", "?"),
            )
        except TreeBuildError as e:
            self.logger.debug("%s tree not understood: %s", label, e)
        return None

    def _parse_fragment(self, text: str) -> Optional[Program]:
        """
        Parse the isolated step array one element at a time.

        Elements that do not parse are skipped; the rest are gathered into
        a single array under the isolated name.
        """
        isolated = self.isolate_array_assignment(text)
        if isolated is None:
            self.logger.debug("No array assignment to isolate")
            return None

        name, array_text = isolated
        merged: Optional[Program] = None
        for element_text in split_top_level(array_text[1:-1], generics=False):
            if not element_text.strip():
                continue
            program = self._parse(f"const {name} = [{element_text}];", SCRIPT, label=FRAGMENT)
            if program is None:
                continue
            if merged is None:
                merged = program
            else:
                _fragment_arrays(merged)[0].elements.extend(_fragment_arrays(program)[0].elements)

        if merged is not None:
            merged.dialect = FRAGMENT
        return merged

    def isolate_array_assignment(self, text: str) -> Optional[Tuple[str, str]]:
        """
        Find ``const|let|var NAME = [ ... ]`` and cut out the bracket-balanced array.

        A name containing the step hint is preferred over the first match.

        Returns:
            (name, array text) or None
        """
        matches = list(_ARRAY_ASSIGNMENT_RE.finditer(text))
        if not matches:
            return None

        hint = self.config.step_name_hint.lower()
        preferred = [m for m in matches if hint and hint in m.group("name").lower()]
        for m in preferred + [m for m in matches if m not in preferred]:
            close = find_matching(text, m.end(), "[", "]")
            if close >= 0:
                return m.group("name"), text[m.end():close + 1]
        return None

    def _steps_from_program(self, program: Program, functions: ConditionFunctionTable) -> List[StepRecord]:
        collector = StepArrayCollector(self.config.step_name_hint, self.config.step_like_ratio)
        steps = []
        for array in collector.collect(program):
            for element in array.elements:
                if isinstance(element, ObjectExpression):
                    step = read_step(element, functions)
                    if step is not None:
                        steps.append(step)
        return validate_steps(steps)
