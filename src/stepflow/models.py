"""
Step data model.

StepRecord is the unit handed to the flow editor. Navigation fields
distinguish an explicit ``null`` (None) from an omitted field (UNSET),
because the editor draws a terminal edge for the former and falls back to
array order for the latter.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class _Unset:
    """Marker for a field that was not present in the source."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

# Navigation value: step id, explicit null, or omitted
NavigationValue = Union[str, None, _Unset]

# Identifier name -> reconstructed "(params) => expr" source text
ConditionFunctionTable = Dict[str, str]

NAVIGATION_FIELDS = ("next_step", "previous_step", "skip_to_step")

# Condition text used when the predicate source cannot be reproduced
FUNCTION_REFERENCE_PLACEHOLDER = "(context) => {{ /* Function reference: {name} */ }}"
COMPLEX_BODY_PLACEHOLDER = "({params}) => {{ /* Complex function body */ }}"
EXPRESSION_BODY_PLACEHOLDER = "({params}) => {{ /* Expression body */ }}"
COMPLEX_EXPRESSION_PLACEHOLDER = "/* complex expression */"


class StepType(str, Enum):
    """Closed set of step kinds the editor knows how to render."""

    INFORMATION = "INFORMATION"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    CONFIRMATION = "CONFIRMATION"
    CUSTOM_COMPONENT = "CUSTOM_COMPONENT"
    CHECKLIST = "CHECKLIST"

    @classmethod
    def from_value(cls, value: Any) -> Optional["StepType"]:
        """Return the matching member, or None for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class StepMeta:
    """Display text attached to a step."""

    title: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        d = {}
        if self.title is not None:
            d["title"] = self.title
        if self.description is not None:
            d["description"] = self.description
        return d


@dataclass(frozen=True)
class StepRecord:
    """One extracted flow step."""

    id: str
    type: Optional[StepType] = None
    next_step: NavigationValue = UNSET
    previous_step: NavigationValue = UNSET
    skip_to_step: NavigationValue = UNSET
    is_skippable: Optional[bool] = None
    condition: Optional[str] = None
    meta: Optional[StepMeta] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the editor-facing mapping, omitting fields that were not set."""
        d: Dict[str, Any] = {"id": self.id}
        if self.type is not None:
            d["type"] = self.type.value
        if self.next_step is not UNSET:
            d["nextStep"] = self.next_step
        if self.previous_step is not UNSET:
            d["previousStep"] = self.previous_step
        if self.skip_to_step is not UNSET:
            d["skipToStep"] = self.skip_to_step
        if self.is_skippable is not None:
            d["isSkippable"] = self.is_skippable
        if self.condition is not None:
            d["condition"] = self.condition
        if self.meta is not None:
            d["meta"] = self.meta.to_dict()
        return d


def build_meta(title: Optional[str], description: Optional[str]) -> Optional[StepMeta]:
    """StepMeta for the given texts, or None when neither is present."""
    if title is None and description is None:
        return None
    return StepMeta(title=title, description=description)


def steps_to_dicts(steps) -> list:
    """Convert a list of StepRecord to plain dicts."""
    return [step.to_dict() for step in steps]


__all__ = [
    "UNSET",
    "NavigationValue",
    "ConditionFunctionTable",
    "NAVIGATION_FIELDS",
    "FUNCTION_REFERENCE_PLACEHOLDER",
    "COMPLEX_BODY_PLACEHOLDER",
    "EXPRESSION_BODY_PLACEHOLDER",
    "COMPLEX_EXPRESSION_PLACEHOLDER",
    "StepType",
    "StepMeta",
    "StepRecord",
    "build_meta",
    "steps_to_dicts",
]
