"""
Lark-based JavaScript parser.

One Earley parser per dialect (start rule), created on first use and cached
for the life of the process.
"""

from pathlib import Path
from typing import Dict, Optional

from lark import Lark, Tree

from .builder import TreeBuilder
from .nodes import Program

GRAMMAR_FILE = "javascript.lark"

MODULE = "module"
SCRIPT = "script"
DIALECTS = (MODULE, SCRIPT)


class ScriptParser:
    """
    Parses JavaScript source into Program nodes.

    Singleton - the grammar is read once and each dialect's parser is built
    lazily. Earley with the dynamic lexer tolerates contextual keywords used
    as property names.

    Usage:
        program = ScriptParser().parse(source, dialect="module")

    Raises lark.exceptions.UnexpectedInput on syntax errors.
    """

    _instance: Optional["ScriptParser"] = None

    def __new__(cls) -> "ScriptParser":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._parsers = {}
            instance._grammar = instance._load_grammar()
            cls._instance = instance
        return cls._instance

    def _load_grammar(self) -> str:
        grammar_path = Path(__file__).parent / GRAMMAR_FILE
        if not grammar_path.exists():
            raise FileNotFoundError(
                f"JavaScript grammar not found: {grammar_path}\n"
                f"Ensure {GRAMMAR_FILE} is in the same directory as parser.py"
            )
        return grammar_path.read_text(encoding="utf-8")

    @classmethod
    def reset(cls) -> None:
        """Drop the cached grammar and parsers."""
        cls._instance = None

    def get_parser(self, dialect: str = MODULE) -> Lark:
        """Lark parser for ``dialect``, built on first request."""
        if dialect not in DIALECTS:
            raise ValueError(f"Unknown dialect: {dialect!r} (expected one of {DIALECTS})")

        parsers: Dict[str, Lark] = self._parsers
        if dialect not in parsers:
            parsers[dialect] = Lark(
                self._grammar,
                start=dialect,
                parser="earley",
                lexer="dynamic",
                propagate_positions=True,
                maybe_placeholders=True,
            )
        return parsers[dialect]

    def parse_tree(self, source: str, dialect: str = MODULE) -> Tree:
        """Raw Lark tree for ``source``."""
        return self.get_parser(dialect).parse(source)

    def parse(self, source: str, dialect: str = MODULE) -> Program:
        """
        Parse source text into a Program.

        Args:
            source: JavaScript text (TypeScript should be preprocessed first)
            dialect: "module" or "script"

        Returns:
            Program node tagged with the dialect
        """
        tree = self.parse_tree(source, dialect)
        return TreeBuilder().build(tree, dialect=dialect)
