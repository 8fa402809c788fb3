"""
Shared pytest fixtures for stepflow tests.

Keeps tests from writing debug_trace.log into the working directory and
resets the process-wide singletons between tests.
"""

import pytest

from stepflow import config_loader
from stepflow.grammar import ScriptParser
from stepflow.logging_config import reset_diagnostic_logger


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Disable the debug log file and clear stepflow settings for every test.
    """
    monkeypatch.setenv("STEPFLOW_DEBUG_LOG", "")
    monkeypatch.setenv("STEPFLOW_LOG_DIR", str(tmp_path / "logs"))
    for env_var in config_loader.ConfigLoader.CONFIG_KEY_TO_ENV.values():
        if env_var not in ("STEPFLOW_DEBUG_LOG", "STEPFLOW_LOG_DIR"):
            monkeypatch.delenv(env_var, raising=False)
    monkeypatch.delenv("STEPFLOW_PROJECT_ROOT", raising=False)

    reset_diagnostic_logger()
    config_loader._config_loader = None
    yield
    reset_diagnostic_logger()
    config_loader._config_loader = None


@pytest.fixture
def reset_script_parser():
    """Reset the grammar parser singleton around a test."""
    ScriptParser.reset()
    yield
    ScriptParser.reset()


@pytest.fixture
def onboarding_source():
    """A typical TypeScript step file."""
    return (
        "import { OnboardingStep } from './types';\n"
        "\n"
        "const isDeveloper = (context: FlowContext) => context.flowData.role === 'developer';\n"
        "\n"
        "export const steps: OnboardingStep[] = [\n"
        "  {\n"
        "    id: 'welcome',\n"
        "    type: 'INFORMATION',\n"
        "    nextStep: 'role',\n"
        "    meta: { title: 'Welcome', description: 'Start here' },\n"
        "  },\n"
        "  {\n"
        "    id: 'role',\n"
        "    type: 'SINGLE_CHOICE',\n"
        "    previousStep: 'welcome',\n"
        "    nextStep: 'dev-setup',\n"
        "  },\n"
        "  {\n"
        "    id: 'dev-setup',\n"
        "    type: 'CHECKLIST',\n"
        "    condition: isDeveloper,\n"
        "    isSkippable: true,\n"
        "    nextStep: null,\n"
        "  },\n"
        "];\n"
    )
