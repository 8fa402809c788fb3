"""Tests for the strict ``export const steps = [...]`` parser."""

import pytest

from stepflow import StepParsingError, parse_exported_steps
from stepflow.models import UNSET, StepType


CANONICAL = (
    "export const steps = [\n"
    "  { id: 'welcome', nextStep: 'profile', meta: { title: 'Hi' } },\n"
    "  {\n"
    "    id: 'profile',\n"
    "    type: 'SINGLE_CHOICE',\n"
    "    previousStep: 'welcome',\n"
    "    nextStep: (ctx) => ctx.flowData.done ? 'end' : null,\n"
    "  },\n"
    "  { id: 'end', nextStep: null, isSkippable: false },\n"
    "];\n"
)


class TestCanonicalFormat:
    def test_ids_in_order(self):
        r = parse_exported_steps(CANONICAL)
        assert [s.id for s in r] == ["welcome", "profile", "end"]

    def test_type_defaults_to_information(self):
        r = parse_exported_steps(CANONICAL)
        assert r[0].type is StepType.INFORMATION
        assert r[1].type is StepType.SINGLE_CHOICE

    def test_function_link_kept_as_source(self):
        r = parse_exported_steps(CANONICAL)
        assert r[1].next_step == "(ctx) => ctx.flowData.done ? 'end' : null"

    def test_links(self):
        r = parse_exported_steps(CANONICAL)
        assert r[0].next_step == "profile"
        assert r[0].previous_step is UNSET
        assert r[2].next_step is None

    def test_meta_and_skippable(self):
        r = parse_exported_steps(CANONICAL)
        assert r[0].meta.title == "Hi"
        assert r[2].is_skippable is False

    def test_typescript_annotations(self):
        r = parse_exported_steps(
            "import type { Step } from './types';\n"
            "export const steps: Step[] = [{ id: 'a' }];\n"
        )
        assert [s.id for s in r] == ["a"]

    def test_condition_reference(self):
        r = parse_exported_steps(
            "const isPro = (context) => context.flowData.plan === 'pro';\n"
            "export const steps = [{ id: 'a', condition: isPro }];\n"
        )
        assert r[0].condition == "(context) => context.flowData.plan === 'pro'"

    def test_other_link_values_omitted(self):
        r = parse_exported_steps("export const steps = [{ id: 'a', nextStep: someVariable }];")
        assert r[0].next_step is UNSET

    def test_empty_array(self):
        assert parse_exported_steps("export const steps = [];") == []


class TestErrors:
    def test_not_a_string(self):
        with pytest.raises(StepParsingError):
            parse_exported_steps(None)

    def test_syntax_error_keeps_cause(self):
        with pytest.raises(StepParsingError) as exc_info:
            parse_exported_steps("export const steps = [{ id: 'a' ;")
        assert exc_info.value.cause is not None
        assert "Syntax error" in str(exc_info.value)

    def test_not_exported(self):
        with pytest.raises(StepParsingError, match="exported 'steps' array"):
            parse_exported_steps("const steps = [{ id: 'a' }];")

    def test_other_export_name(self):
        with pytest.raises(StepParsingError):
            parse_exported_steps("export const screens = [{ id: 'a' }];")

    def test_non_object_element(self):
        with pytest.raises(StepParsingError, match="non-object"):
            parse_exported_steps("export const steps = ['a'];")

    def test_missing_id(self):
        with pytest.raises(StepParsingError, match="missing a valid `id`"):
            parse_exported_steps("export const steps = [{ type: 'INFORMATION' }];")

    def test_unknown_type(self):
        with pytest.raises(StepParsingError, match="unknown type"):
            parse_exported_steps("export const steps = [{ id: 'a', type: 'WIZARD' }];")
