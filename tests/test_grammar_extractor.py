"""Tests for the grammar-based fallback extractor."""

import pytest

from stepflow.config_loader import ParserConfig
from stepflow.grammar import MODULE, SCRIPT, ScriptParser
from stepflow.grammar_extractor import GrammarExtractor, StepArrayCollector
from stepflow.models import StepType, steps_to_dicts
from stepflow.preprocess import preprocess_source


pytestmark = pytest.mark.usefixtures("reset_script_parser")


def extract(source, functions=None, config=None):
    return GrammarExtractor(config=config).extract(preprocess_source(source), functions or {})


def record_parses(monkeypatch):
    """Record (dialect, text) for every parse the extractor requests."""
    calls = []
    original = ScriptParser.parse

    def recording_parse(parser, source, dialect=MODULE):
        calls.append((dialect, source))
        return original(parser, source, dialect=dialect)

    monkeypatch.setattr(ScriptParser, "parse", recording_parse)
    return calls


# ============================================================
# STEP ARRAYS
# ============================================================


class TestStepArrays:
    def test_named_array(self):
        r = extract(
            "const onboardingSteps = [\n"
            "  { id: 'welcome', type: 'INFORMATION', nextStep: 'done' },\n"
            "  { id: 'done', nextStep: null },\n"
            "];\n"
        )
        assert steps_to_dicts(r) == [
            {"id": "welcome", "type": "INFORMATION", "nextStep": "done"},
            {"id": "done", "nextStep": None},
        ]

    def test_step_like_array_with_other_name(self):
        r = extract("const screens = [{ id: 'a' }, { id: 'b' }];")
        assert [s.id for s in r] == ["a", "b"]

    def test_array_counted_once(self):
        r = extract("const steps = [{ id: 'a' }];")
        assert len(r) == 1

    def test_nested_meta(self):
        r = extract("const steps = [{ id: 'a', meta: { title: 'T', description: 'D' } }];")
        assert r[0].meta.title == "T"
        assert r[0].meta.description == "D"

    def test_top_level_title_wins_over_meta(self):
        r = extract("const steps = [{ id: 'a', title: 'Top', meta: { title: 'Nested' } }];")
        assert r[0].meta.title == "Top"

    def test_template_values(self):
        r = extract("const steps = [{ id: `a`, nextStep: `b` }];")
        assert r[0].id == "a"
        assert r[0].next_step == "b"

    def test_unknown_type_dropped(self):
        r = extract("const steps = [{ id: 'a', type: 'WIZARD' }];")
        assert r[0].type is None

    def test_known_type(self):
        r = extract("const steps = [{ id: 'a', type: 'CONFIRMATION', isSkippable: true }];")
        assert r[0].type is StepType.CONFIRMATION
        assert r[0].is_skippable is True

    def test_objects_without_id_skipped(self):
        r = extract("const steps = [{ label: 'x' }, { id: 'a' }];")
        assert [s.id for s in r] == ["a"]

    def test_typescript_source(self):
        r = extract(
            "import { Step } from './types';\n"
            "interface Local { id: string }\n"
            "export const steps: Step[] = [\n"
            "  { id: 'a', nextStep: 'b' as const },\n"
            "  { id: 'b' },\n"
            "] satisfies Step[];\n"
        )
        assert [s.id for s in r] == ["a", "b"]

    def test_no_literal_array(self):
        assert extract("const steps = ids.map((id) => ({ id, type: 'INFORMATION' }));") == []


class TestConditions:
    def test_function_reference(self):
        r = extract(
            "const steps = [{ id: 'a', condition: isDev }];",
            {"isDev": "(context) => context.flowData.dev"},
        )
        assert r[0].condition == "(context) => context.flowData.dev"

    def test_unresolved_reference(self):
        r = extract("const steps = [{ id: 'a', condition: isDev }];")
        assert r[0].condition == "(context) => { /* Function reference: isDev */ }"

    def test_inline_arrow(self):
        r = extract(
            "const steps = [{ id: 'a', "
            "condition: (ctx) => ctx.flowData.plan === 'pro' && ctx.flowData.seats > 5 }];"
        )
        assert r[0].condition == "(ctx) => ctx.flowData.plan === 'pro' && ctx.flowData.seats > 5"

    def test_block_arrow(self):
        r = extract("const steps = [{ id: 'a', condition: (ctx) => { return true; } }];")
        assert r[0].condition == "(ctx) => { /* Complex function body */ }"

    def test_call_body(self):
        r = extract("const steps = [{ id: 'a', condition: (ctx) => isReady(ctx) }];")
        assert r[0].condition == "(ctx) => { /* Expression body */ }"


# ============================================================
# FALLBACK ATTEMPTS
# ============================================================


class TestAttempts:
    def test_fragment_when_file_does_not_parse(self):
        r = extract(
            "class Flow { run() {} }\n"
            "const steps = [{ id: 'a', nextStep: 'b' }];\n"
        )
        assert [s.id for s in r] == ["a"]
        assert r[0].next_step == "b"

    def test_unparseable(self):
        assert extract("}{ not javascript ((") == []

    def test_script_skipped_after_module_parse(self, monkeypatch):
        calls = record_parses(monkeypatch)
        assert extract("const total = 1;") == []
        assert [dialect for dialect, _ in calls] == [MODULE]

    def test_script_tried_when_module_fails(self, monkeypatch):
        calls = record_parses(monkeypatch)
        assert extract("}{ not javascript ((") == []
        assert [dialect for dialect, _ in calls] == [MODULE, SCRIPT]

    def test_large_source_parsed_per_element(self, monkeypatch):
        calls = record_parses(monkeypatch)
        checks = "".join(
            f"const check{i} = (context) => context.flowData.n{i} > {i};\n" for i in range(10)
        )
        source = checks + "const steps = [{ id: `a`, nextStep: `b` }, { id: `b` }];\n"
        r = extract(source, config=ParserConfig(grammar_max_chars=200))
        assert [s.id for s in r] == ["a", "b"]
        assert r[0].next_step == "b"
        assert len(calls) == 2
        assert all(len(text) <= 200 for _, text in calls)

    def test_bad_element_skipped(self):
        r = extract("const steps = [{ id: 'a' }, { id: 'b', nextStep: }, { id: 'c' }];")
        assert [s.id for s in r] == ["a", "c"]

    def test_comparisons_do_not_split_elements(self):
        r = extract(
            "class Flow {}\n"
            "const steps = [{ id: 'a', condition: (c) => c.n > 1 && c.m < 2 }, { id: 'b' }];\n"
        )
        assert [s.id for s in r] == ["a", "b"]
        assert r[0].condition == "(c) => c.n > 1 && c.m < 2"

    def test_isolate_prefers_step_name(self):
        r = GrammarExtractor().isolate_array_assignment(
            "const colors = ['red'];\nconst onboardingSteps = [{ id: 'x' }];"
        )
        assert r == ("onboardingSteps", "[{ id: 'x' }]")

    def test_isolate_first_match_without_hint(self):
        r = GrammarExtractor().isolate_array_assignment("let items = [1, [2]];")
        assert r == ("items", "[1, [2]]")

    def test_isolate_nothing(self):
        assert GrammarExtractor().isolate_array_assignment("const a = 1;") is None

    def test_isolate_skips_unbalanced(self):
        r = GrammarExtractor().isolate_array_assignment(
            "const steps = [{ id: 'x' }\nconst other = ['y'];"
        )
        assert r == ("other", "['y']")


class TestCollector:
    def _collect(self, source, ratio=0.5, hint="step"):
        program = ScriptParser().parse(source, dialect="script")
        return StepArrayCollector(hint, ratio).collect(program)

    def test_ratio_threshold(self):
        source = "const screens = [{ id: 'a' }, { label: 'b' }];"
        assert len(self._collect(source, ratio=0.5)) == 1
        assert self._collect(source, ratio=0.75) == []

    def test_name_hint_case_insensitive(self):
        assert len(self._collect("const MY_STEPS = [];")) == 1

    def test_custom_hint(self):
        assert self._collect("const steps = [];", hint="screen") == []
        assert len(self._collect("const screens = [];", hint="screen")) == 1

    def test_nested_arrays_found(self):
        r = self._collect("const flows = { main: [{ id: 'a' }] };")
        assert len(r) == 1

    def test_config_name_hint(self):
        config = ParserConfig(step_name_hint="screen")
        r = extract("const screens = [{ id: 'a' }, { label: 'x' }];", config=config)
        assert [s.id for s in r] == ["a"]
