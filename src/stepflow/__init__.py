"""
stepflow - extract onboarding step definitions from JavaScript/TypeScript.

    from stepflow import parse_steps

    steps = parse_steps(open("onboarding-steps.ts").read())
    for step in steps:
        print(step.to_dict())

parse_steps never raises; parse_exported_steps is the strict variant for the
canonical ``export const steps = [...]`` format.
"""

__version__ = "0.1.0"

from .conditions import ConditionGroup, ConditionParser, ConditionRule
from .config_loader import ConfigLoader, ParserConfig, load_config
from .exceptions import ConfigError, StepflowError, StepParsingError
from .exported import parse_exported_steps
from .functions import extract_condition_functions
from .models import UNSET, StepMeta, StepRecord, StepType, steps_to_dicts
from .parser import StepParser, parse_steps
from .preprocess import preprocess_source
from .validation import validate_steps

__all__ = [
    "__version__",
    "ConditionGroup",
    "ConditionParser",
    "ConditionRule",
    "ConfigError",
    "ConfigLoader",
    "ParserConfig",
    "StepMeta",
    "StepParser",
    "StepParsingError",
    "StepRecord",
    "StepType",
    "StepflowError",
    "UNSET",
    "extract_condition_functions",
    "load_config",
    "parse_exported_steps",
    "parse_steps",
    "preprocess_source",
    "steps_to_dicts",
    "validate_steps",
]
