"""
Command-line entry point.

    python -m stepflow FILE [--strict] [--conditions] [--project DIR] [--verbose]

Prints the extracted steps as JSON. Exit status: 0 on success, 1 when
--strict parsing fails, 2 when the input cannot be read.
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .conditions import ConditionParser
from .config_loader import ConfigLoader
from .exceptions import StepParsingError
from .exported import parse_exported_steps
from .logging_config import configure_cli_logging
from .models import StepRecord
from .parser import StepParser

EXIT_OK = 0
EXIT_PARSE_ERROR = 1
EXIT_INPUT_ERROR = 2

# Settings that only take effect through the environment
_ENV_ONLY_KEYS = ("debug_log", "log_dir")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepflow",
        description="Extract onboarding step definitions from JavaScript/TypeScript source",
    )
    parser.add_argument("file", help="Source file to read ('-' for stdin)")
    parser.add_argument("--strict", action="store_true",
                        help="Require the canonical 'export const steps = [...]' format")
    parser.add_argument("--conditions", action="store_true",
                        help="Include condition rule groups for each step")
    parser.add_argument("--project", "-p", type=Path, default=None,
                        help="Project root holding stepflow.json (default: current directory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def _read_source(name: str) -> str:
    if name == "-":
        return sys.stdin.read()
    return Path(name).read_text(encoding="utf-8")


def _apply_env_only_settings(loader: ConfigLoader) -> None:
    for key in _ENV_ONLY_KEYS:
        value = loader.get(key)
        if value is not None:
            os.environ.setdefault(loader.CONFIG_KEY_TO_ENV[key], str(value))


def _render(steps: List[StepRecord], with_conditions: bool) -> list:
    condition_parser = ConditionParser()
    rendered = []
    for step in steps:
        data = step.to_dict()
        if with_conditions and step.condition is not None:
            data["conditionGroups"] = [
                group.to_dict() for group in condition_parser.parse(step.condition)
            ]
        rendered.append(data)
    return rendered


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    console = Console()
    error_console = Console(stderr=True)

    if args.project:
        os.environ["STEPFLOW_PROJECT_ROOT"] = str(args.project.resolve())

    loader = ConfigLoader()
    loader.load(args.project)
    _apply_env_only_settings(loader)
    logger = configure_cli_logging(args.verbose)

    try:
        source = _read_source(args.file)
    except (OSError, UnicodeDecodeError) as e:
        error_console.print(f"[red]Cannot read {escape(args.file)}:[/red] {escape(str(e))}")
        return EXIT_INPUT_ERROR

    if args.strict:
        try:
            steps = parse_exported_steps(source)
        except StepParsingError as e:
            logger.debug("Strict parse failed", exc_info=e.cause)
            error_console.print(f"[red]Parsing failed:[/red] {escape(str(e))}")
            return EXIT_PARSE_ERROR
    else:
        steps = StepParser(logger=logger, config=loader.get_parser_config()).parse(source)

    console.print_json(json.dumps(_render(steps, args.conditions)))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
