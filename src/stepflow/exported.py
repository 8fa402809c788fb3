"""
Strict parser for the canonical step file format:

    export const steps = [
        { id: 'welcome', type: 'INFORMATION', nextStep: 'profile' },
        ...
    ];

Unlike StepParser this does not degrade: anything off-format raises
StepParsingError.
"""

from typing import List, Optional

from lark.exceptions import UnexpectedInput

from .exceptions import StepParsingError
from .functions import extract_condition_functions
from .grammar import MODULE, ScriptParser, TreeBuildError
from .grammar.nodes import (
    ArrayExpression,
    ArrowFunctionExpression,
    ExportNamedDeclaration,
    FunctionExpression,
    Identifier,
    Literal,
    Node,
    ObjectExpression,
    Program,
    VariableDeclaration,
    object_property,
)
from .grammar_extractor import (
    NAVIGATION_KEYS,
    condition_source,
    is_null,
    read_meta,
    string_value,
)
from .models import UNSET, ConditionFunctionTable, StepRecord, StepType
from .preprocess import preprocess_source
from .validation import validate_steps

STEPS_EXPORT_NAME = "steps"


def parse_exported_steps(source: str) -> List[StepRecord]:
    """
    Parse an ``export const steps = [...]`` file.

    Args:
        source: JavaScript/TypeScript source text

    Returns:
        One StepRecord per array element, in order

    Raises:
        StepParsingError: If the source cannot be parsed, has no exported
            ``steps`` array, or contains a malformed step
    """
    if not isinstance(source, str):
        raise StepParsingError(f"Expected source text, got {type(source).__name__}")

    code = preprocess_source(source, keep_exports=True)
    try:
        program = ScriptParser().parse(code, dialect=MODULE)
    except UnexpectedInput as e:
        line = getattr(e, "line", "?")
        column = getattr(e, "column", "?")
        raise StepParsingError(f"Syntax error at line {line}, column {column}", cause=e) from e
    except TreeBuildError as e:
        raise StepParsingError(f"Unsupported syntax: {e}", cause=e) from e

    array = _find_exported_steps(program)
    if array is None:
        raise StepParsingError("Could not find an exported 'steps' array in the file.")

    functions = extract_condition_functions(source)
    steps = []
    for element in array.elements:
        if not isinstance(element, ObjectExpression):
            raise StepParsingError("Found a non-object element in the steps array.")
        steps.append(_parse_step_object(element, code, functions))
    return validate_steps(steps)


def _find_exported_steps(program: Program) -> Optional[ArrayExpression]:
    for statement in program.body:
        if not isinstance(statement, ExportNamedDeclaration):
            continue
        declaration = statement.declaration
        if not isinstance(declaration, VariableDeclaration):
            continue
        for declarator in declaration.declarations:
            if (
                isinstance(declarator.id, Identifier)
                and declarator.id.name == STEPS_EXPORT_NAME
                and isinstance(declarator.init, ArrayExpression)
            ):
                return declarator.init
    return None


def _parse_step_object(node: ObjectExpression, code: str,
                       functions: ConditionFunctionTable) -> StepRecord:
    id_prop = object_property(node, "id")
    step_id = string_value(id_prop.value) if id_prop is not None else None
    if step_id is None or not step_id.strip():
        raise StepParsingError("Step is missing a valid `id` property.")

    step_type = StepType.INFORMATION
    type_prop = object_property(node, "type")
    if type_prop is not None:
        step_type = StepType.from_value(string_value(type_prop.value))
        if step_type is None:
            raise StepParsingError(f"Step \"{step_id}\" has an unknown type.")

    fields = {}
    for key, field_name in NAVIGATION_KEYS.items():
        prop = object_property(node, key)
        if prop is None:
            continue
        try:
            link = _parse_step_link(prop.value, code)
        except ValueError as e:
            raise StepParsingError(
                f"Failed to parse a link property for step \"{step_id}\": {e}", cause=e
            ) from e
        if link is not UNSET:
            fields[field_name] = link

    skippable_prop = object_property(node, "isSkippable")
    if skippable_prop is not None:
        value = skippable_prop.value
        if isinstance(value, Literal) and isinstance(value.value, bool):
            fields["is_skippable"] = value.value

    condition_prop = object_property(node, "condition")
    if condition_prop is not None:
        condition = condition_source(condition_prop.value, functions)
        if condition is not None:
            fields["condition"] = condition

    meta = read_meta(node)
    if meta is not None:
        fields["meta"] = meta

    return StepRecord(id=step_id, type=step_type, **fields)


def _parse_step_link(value: Node, code: str):
    """String, None, function source text, or UNSET for anything else."""
    if is_null(value):
        return None
    text = string_value(value)
    if text is not None:
        return text
    if isinstance(value, (ArrowFunctionExpression, FunctionExpression)):
        if value.span is None:
            raise ValueError("Could not reconstruct function string.")
        start, end = value.span
        return code[start:end]
    return UNSET
