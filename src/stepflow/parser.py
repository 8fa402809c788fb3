"""
Step extraction entry point.

StepParser tries the structural scan first and falls back to the grammar
extractor on an empty result. It never raises: any failure is logged and an
empty list is returned.
"""

import logging
from typing import Any, List, Optional

from .config_loader import ParserConfig
from .functions import extract_condition_functions
from .grammar_extractor import GrammarExtractor
from .logging_config import NULL_LOGGER
from .models import StepRecord
from .preprocess import preprocess_source
from .structural import StructuralExtractor


class StepParser:
    """
    Two-strategy step parser.

    Usage:
        parser = StepParser()
        steps = parser.parse(source_text)

    Args:
        logger: Receives diagnostics; defaults to a logger that discards everything
        config: Pipeline settings; defaults to ParserConfig()
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 config: Optional[ParserConfig] = None):
        self.logger = logger or NULL_LOGGER
        self.config = config or ParserConfig()
        self.structural = StructuralExtractor(self.logger)
        self.grammar = GrammarExtractor(self.logger, self.config)

    def parse(self, source: Any) -> List[StepRecord]:
        """
        Extract steps from source text.

        Args:
            source: JavaScript/TypeScript source; anything other than a
                non-blank string yields []

        Returns:
            Validated, deduplicated steps in source order
        """
        if not isinstance(source, str) or not source.strip():
            return []

        try:
            functions = extract_condition_functions(source)
            self.logger.debug("Collected %d condition functions", len(functions))

            steps = self.structural.extract(source, functions)
            if steps:
                self.logger.debug("Strategy 'structural' produced %d steps", len(steps))
                return steps

            if not self.config.grammar_fallback:
                self.logger.debug("Structural scan found nothing; grammar fallback disabled")
                return []

            steps = self.grammar.extract(preprocess_source(source), functions)
            self.logger.debug("Strategy 'grammar' produced %d steps", len(steps))
            return steps
        except Exception as e:
            self.logger.error("Step parsing failed: %s", e)
            return []


def parse_steps(source: Any, logger: Optional[logging.Logger] = None) -> List[StepRecord]:
    """Parse ``source`` with a default-configured StepParser."""
    return StepParser(logger=logger).parse(source)
