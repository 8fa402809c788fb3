"""
Structural step extraction (primary strategy).

Locates object literals that carry an ``id: "<string>"`` key, bounds each one
with a brace-depth scan and reads the remaining fields with independent
regexes. No grammar is involved, so surrounding syntax (imports, type
annotations, JSX, module wrappers) is irrelevant as long as the step objects
themselves are literal.
"""

import logging
import re
from typing import Dict, List, Optional

from .logging_config import NULL_LOGGER
from .models import (
    COMPLEX_BODY_PLACEHOLDER,
    FUNCTION_REFERENCE_PLACEHOLDER,
    ConditionFunctionTable,
    StepRecord,
    StepType,
    build_meta,
)
from .textscan import (
    STRING_PATTERN,
    clean_parameter_list,
    find_matching,
    innermost_enclosing,
    string_literal_value,
)
from .validation import validate_steps

_STRING_VALUE = r"(?P<value>" + STRING_PATTERN + r")"


def _field(name: str, value_pattern: str) -> "re.Pattern":
    # Bare or quoted key, not the tail of a longer identifier
    return re.compile(
        r"(?<![\w$.])[\"']?" + name + r"[\"']?\s*:\s*" + value_pattern,
        re.S | re.X,
    )


_ID_RE = _field("id", _STRING_VALUE)
_TYPE_RE = _field("type", _STRING_VALUE)
_TITLE_RE = _field("title", _STRING_VALUE)
_DESCRIPTION_RE = _field("description", _STRING_VALUE)
_SKIPPABLE_RE = _field("isSkippable", r"(?P<value>true|false)(?![\w$])")

_NAVIGATION_RES = {
    "next_step": _field("nextStep", r"(?P<value>" + STRING_PATTERN + r"|null(?![\w$]))"),
    "previous_step": _field("previousStep", r"(?P<value>" + STRING_PATTERN + r"|null(?![\w$]))"),
    "skip_to_step": _field("skipToStep", r"(?P<value>" + STRING_PATTERN + r"|null(?![\w$]))"),
}

_CONDITION_REFERENCE_RE = _field(
    "condition",
    r"(?!(?:function|async|null|undefined|true|false)(?![\w$]))"
    r"(?P<name>[A-Za-z_$][\w$]*)(?![\w$])(?!\s*=>)",
)
_CONDITION_ARROW_RE = _field(
    "condition",
    r"(?P<arrow>(?:async\s+)?(?:\((?P<params>[^)]*)\)|(?P<param>[A-Za-z_$][\w$]*))"
    r"\s*=>\s*(?P<body>[^,}]+))",
)
_CONDITION_FUNCTION_RE = _field(
    "condition",
    r"(?:async\s+)?function\b[^(]*\((?P<params>[^)]*)\)",
)


class StructuralExtractor:
    """
    Brace-balanced scan for id-bearing object literals.

    Usage:
        extractor = StructuralExtractor()
        steps = extractor.extract(source, extract_condition_functions(source))
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or NULL_LOGGER

    def extract(self, text: str, functions: ConditionFunctionTable) -> List[StepRecord]:
        """
        Extract validated steps from raw text.

        Returns:
            Steps in order of their opening brace, or [] when nothing matches
        """
        try:
            candidates = self._find_candidates(text)
            if not candidates:
                return []

            steps = []
            for open_pos, step_id in candidates.items():
                close_pos = find_matching(text, open_pos)
                if close_pos < 0:
                    self.logger.debug("Unbalanced object literal at offset %d", open_pos)
                    continue
                step = self._parse_object(text[open_pos:close_pos + 1], step_id, functions)
                if step is not None:
                    steps.append(step)

            return validate_steps(steps)
        except Exception as e:
            self.logger.warning("Structural extraction failed: %s", e)
            return []

    # ------------------------------------------------------------------
    # Candidate discovery
    # ------------------------------------------------------------------

    def _find_candidates(self, text: str) -> Dict[int, str]:
        """Map opening-brace offset -> id value, ordered by offset."""
        id_matches = {}
        for m in _ID_RE.finditer(text):
            if not _is_key_position(text, m.start()):
                continue
            value = string_literal_value(m.group("value"))
            if value is not None:
                id_matches[m.start()] = value

        if not id_matches:
            return {}

        enclosing = innermost_enclosing(text, sorted(id_matches))
        candidates: Dict[int, str] = {}
        for pos, open_pos in enclosing.items():
            # First id key of an object wins
            candidates.setdefault(open_pos, id_matches[pos])
        return dict(sorted(candidates.items()))

    # ------------------------------------------------------------------
    # Field extraction
    # ------------------------------------------------------------------

    def _parse_object(
        self, object_text: str, step_id: str, functions: ConditionFunctionTable
    ) -> Optional[StepRecord]:
        if not step_id.strip():
            return None

        fields = {}

        for name, pattern in _NAVIGATION_RES.items():
            m = pattern.search(object_text)
            if m:
                raw = m.group("value")
                fields[name] = None if raw == "null" else string_literal_value(raw)

        m = _SKIPPABLE_RE.search(object_text)
        if m:
            fields["is_skippable"] = m.group("value") == "true"

        condition = _extract_condition(object_text, functions)
        if condition is not None:
            fields["condition"] = condition

        m = _TYPE_RE.search(object_text)
        if m:
            step_type = StepType.from_value(string_literal_value(m.group("value")))
            if step_type is not None:
                fields["type"] = step_type

        meta = build_meta(
            _search_string(_TITLE_RE, object_text),
            _search_string(_DESCRIPTION_RE, object_text),
        )
        if meta is not None:
            fields["meta"] = meta

        return StepRecord(id=step_id, **fields)


def _search_string(pattern: "re.Pattern", text: str) -> Optional[str]:
    m = pattern.search(text)
    if not m:
        return None
    return string_literal_value(m.group("value"))


def _extract_condition(object_text: str, functions: ConditionFunctionTable) -> Optional[str]:
    m = _CONDITION_REFERENCE_RE.search(object_text)
    if m:
        name = m.group("name")
        if name in functions:
            return functions[name]
        return FUNCTION_REFERENCE_PLACEHOLDER.format(name=name)

    m = _CONDITION_ARROW_RE.search(object_text)
    if m:
        body = m.group("body").strip()
        if body.startswith("{"):
            params = m.group("param") or clean_parameter_list(m.group("params") or "")
            return COMPLEX_BODY_PLACEHOLDER.format(params=params)
        return m.group("arrow").strip()

    m = _CONDITION_FUNCTION_RE.search(object_text)
    if m:
        return COMPLEX_BODY_PLACEHOLDER.format(params=clean_parameter_list(m.group("params")))

    return None


def _is_key_position(text: str, pos: int) -> bool:
    """True when the previous significant character opens or continues an object."""
    i = pos - 1
    while i >= 0 and text[i].isspace():
        i -= 1
    return i >= 0 and text[i] in "{,"
