"""Tests for the stepflow command-line entry point."""

import io
import json

import pytest

from stepflow.cli import EXIT_INPUT_ERROR, EXIT_OK, EXIT_PARSE_ERROR, main


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Project directory; STEPFLOW_PROJECT_ROOT is restored after the test."""
    monkeypatch.setenv("STEPFLOW_PROJECT_ROOT", str(tmp_path))
    return tmp_path


def run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestLenientMode:
    def test_prints_steps(self, project, capsys, onboarding_source):
        source = project / "steps.ts"
        source.write_text(onboarding_source, encoding="utf-8")
        code, out, _ = run(capsys, str(source), "--project", str(project))
        assert code == EXIT_OK
        data = json.loads(out)
        assert [step["id"] for step in data] == ["welcome", "role", "dev-setup"]
        assert data[2]["nextStep"] is None
        assert "conditionGroups" not in data[2]

    def test_reads_stdin(self, project, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("[{ id: 'a', nextStep: 'b' }]"))
        code, out, _ = run(capsys, "-", "-p", str(project))
        assert code == EXIT_OK
        assert json.loads(out) == [{"id": "a", "nextStep": "b"}]

    def test_nothing_found(self, project, capsys):
        source = project / "empty.js"
        source.write_text("const x = 1;\n", encoding="utf-8")
        code, out, _ = run(capsys, str(source), "-p", str(project))
        assert code == EXIT_OK
        assert json.loads(out) == []

    def test_conditions(self, project, capsys, onboarding_source):
        source = project / "steps.ts"
        source.write_text(onboarding_source, encoding="utf-8")
        code, out, _ = run(capsys, str(source), "--conditions", "-p", str(project))
        assert code == EXIT_OK
        groups = json.loads(out)[2]["conditionGroups"]
        assert groups == [{
            "id": "group-1",
            "logic": "AND",
            "rules": [{
                "id": "rule-1",
                "field": "role",
                "operator": "equals",
                "value": "developer",
                "valueType": "string",
            }],
        }]

    def test_config_file_applied(self, project, capsys):
        (project / "stepflow.json").write_text(json.dumps({"grammar_fallback": False}), encoding="utf-8")
        source = project / "steps.js"
        source.write_text("const steps = [{ /* hidden */ id: 'a' }];\n", encoding="utf-8")
        code, out, _ = run(capsys, str(source), "-p", str(project))
        assert code == EXIT_OK
        assert json.loads(out) == []


class TestStrictMode:
    def test_success(self, project, capsys):
        source = project / "steps.ts"
        source.write_text("export const steps = [{ id: 'a' }];\n", encoding="utf-8")
        code, out, _ = run(capsys, str(source), "--strict", "-p", str(project))
        assert code == EXIT_OK
        assert json.loads(out) == [{"id": "a", "type": "INFORMATION"}]

    def test_failure(self, project, capsys):
        source = project / "steps.ts"
        source.write_text("const steps = [{ id: 'a' }];\n", encoding="utf-8")
        code, out, err = run(capsys, str(source), "--strict", "-p", str(project))
        assert code == EXIT_PARSE_ERROR
        assert out == ""
        assert "Parsing failed" in err


class TestInputErrors:
    def test_missing_file(self, project, capsys):
        code, out, err = run(capsys, str(project / "nope.ts"), "-p", str(project))
        assert code == EXIT_INPUT_ERROR
        assert "Cannot read" in err

    def test_missing_argument(self, capsys):
        with pytest.raises(SystemExit):
            main([])
