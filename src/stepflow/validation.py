"""Final filtering shared by both extraction strategies."""

from dataclasses import replace
from typing import Iterable, List, Set

from .models import NAVIGATION_FIELDS, UNSET, StepRecord


def _normalize_navigation(step: StepRecord) -> StepRecord:
    changes = {}
    for name in NAVIGATION_FIELDS:
        value = getattr(step, name)
        if value is UNSET or value is None:
            continue
        if not isinstance(value, str) or value == "null":
            changes[name] = None
    return replace(step, **changes) if changes else step


def validate_steps(steps: Iterable[StepRecord]) -> List[StepRecord]:
    """
    Drop invalid records, normalize navigation values and deduplicate.

    - records without a non-blank string ``id`` are dropped
    - navigation values that are not strings, or are the text "null",
      become None
    - the first record for each id wins; relative order is preserved
    """
    seen_ids: Set[str] = set()
    result: List[StepRecord] = []

    for step in steps:
        if not isinstance(step, StepRecord):
            continue
        if not isinstance(step.id, str) or not step.id.strip():
            continue
        if step.id in seen_ids:
            continue
        seen_ids.add(step.id)
        result.append(_normalize_navigation(step))

    return result
