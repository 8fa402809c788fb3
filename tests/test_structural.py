"""Tests for the structural (brace-scan) step extractor."""

from stepflow.models import UNSET, StepType, steps_to_dicts
from stepflow.structural import StructuralExtractor


def extract(source, functions=None):
    return StructuralExtractor().extract(source, functions or {})


# ============================================================
# BASIC SHAPES
# ============================================================


class TestBasicExtraction:
    def test_two_steps(self):
        r = extract(
            "const steps = [\n"
            '  { id: "s1", type: "INFORMATION", meta: { title: "Welcome" } },\n'
            '  { id: "s2", nextStep: null },\n'
            "];\n"
        )
        assert steps_to_dicts(r) == [
            {"id": "s1", "type": "INFORMATION", "meta": {"title": "Welcome"}},
            {"id": "s2", "nextStep": None},
        ]

    def test_navigation_fields(self):
        r = extract("[{ id: 'a', nextStep: 'b', previousStep: 'start', skipToStep: 'end' }]")
        assert r[0].next_step == "b"
        assert r[0].previous_step == "start"
        assert r[0].skip_to_step == "end"

    def test_missing_navigation_is_unset(self):
        r = extract("[{ id: 'a' }]")
        assert r[0].next_step is UNSET

    def test_quoted_keys(self):
        r = extract('[{ "id": "q", "nextStep": "r" }]')
        assert r[0].id == "q"
        assert r[0].next_step == "r"

    def test_template_id(self):
        r = extract("[{ id: `tpl` }]")
        assert r[0].id == "tpl"

    def test_skippable(self):
        r = extract("[{ id: 'a', isSkippable: false }]")
        assert r[0].is_skippable is False

    def test_unknown_type_dropped(self):
        r = extract("[{ id: 'a', type: 'WIZARD' }]")
        assert r[0].type is None

    def test_known_type(self):
        r = extract("[{ id: 'a', type: 'CUSTOM_COMPONENT' }]")
        assert r[0].type is StepType.CUSTOM_COMPONENT

    def test_top_level_title(self):
        r = extract("[{ id: 'a', title: 'Hello', description: 'World' }]")
        assert r[0].meta.title == "Hello"
        assert r[0].meta.description == "World"

    def test_null_text_normalized(self):
        r = extract('[{ id: "a", nextStep: "null" }]')
        assert r[0].next_step is None


class TestRobustness:
    def test_nested_meta_does_not_leak(self):
        r = extract(
            "[\n"
            "  { id: 'a', meta: { title: 'X', description: 'Y' }, nextStep: 'b' },\n"
            "  { id: 'b' },\n"
            "]"
        )
        assert r[0].meta.title == "X"
        assert r[0].next_step == "b"
        assert r[1].meta is None

    def test_id_inside_string_ignored(self):
        r = extract("[{ id: 'a', title: \"id: 'x'\" }]")
        assert [s.id for s in r] == ["a"]

    def test_braces_in_strings(self):
        r = extract("[{ id: 'a', title: 'curly } brace', nextStep: 'b' }]")
        assert r[0].next_step == "b"

    def test_unbalanced_object_skipped(self):
        assert extract("const steps = [{ id: 'a', title: 'x' ") == []

    def test_duplicates_first_wins(self):
        r = extract("[{ id: 'a', nextStep: 'b' }, { id: 'a', nextStep: 'c' }]")
        assert len(r) == 1
        assert r[0].next_step == "b"

    def test_blank_id_dropped(self):
        assert extract("[{ id: '  ' }]") == []

    def test_no_candidates(self):
        assert extract("const x = 1;") == []

    def test_id_after_comment_is_not_a_key(self):
        assert extract("[{ // first\n id: 'a' }]") == []


# ============================================================
# CONDITIONS
# ============================================================


class TestConditions:
    def test_reference_resolved(self):
        r = extract(
            "[{ id: 'a', condition: isDev }]",
            {"isDev": "(context) => context.flowData.role === 'dev'"},
        )
        assert r[0].condition == "(context) => context.flowData.role === 'dev'"

    def test_unresolved_reference(self):
        r = extract("[{ id: 'a', condition: checkSomething }]")
        assert r[0].condition == "(context) => { /* Function reference: checkSomething */ }"

    def test_inline_arrow(self):
        r = extract("[{ id: 'a', condition: (ctx) => ctx.flowData.x === 'y', nextStep: 'b' }]")
        assert r[0].condition == "(ctx) => ctx.flowData.x === 'y'"
        assert r[0].next_step == "b"

    def test_single_param_arrow(self):
        r = extract("[{ id: 'a', condition: ctx => ctx.flowData.ok }]")
        assert r[0].condition == "ctx => ctx.flowData.ok"

    def test_block_arrow(self):
        r = extract("[{ id: 'a', condition: (ctx: Ctx) => { return ctx.flowData.ok; } }]")
        assert r[0].condition == "(ctx) => { /* Complex function body */ }"

    def test_function_expression(self):
        r = extract("[{ id: 'a', condition: function (ctx) { return true; } }]")
        assert r[0].condition == "(ctx) => { /* Complex function body */ }"

    def test_no_condition(self):
        r = extract("[{ id: 'a' }]")
        assert r[0].condition is None
