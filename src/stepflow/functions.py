"""
Condition function table.

Steps usually reference their predicate by name (``condition: isDeveloper``)
and declare it once near the top of the file. This module collects those
declarations so both extraction strategies can inline the predicate text.
"""

import re

from .models import ConditionFunctionTable
from .textscan import clean_parameter_list, normalize_expression, strip_comments

# const <name>[: Type] = (<params>)[: Ret] => <expr> <terminator>
# The body ends at ';', a blank line, the next declaration, or end of text.
_ARROW_FUNCTION_RE = re.compile(
    r"\bconst\s+(?P<name>[\w$]+)\s*(?::[^=;]+?)?=\s*"
    r"\((?P<params>[^)]*)\)\s*(?::\s*[^=;{]+?)?\s*=>\s*(?![\s{])"
    r"(?P<body>[^;]+?)"
    r"\s*(?:;"
    r"|(?=\n\s*\n)"
    r"|(?=\n\s*(?:export\s+)?(?:const|let|var|function|type|interface|class)\b)"
    r"|\Z)",
    re.S,
)


def extract_condition_functions(text: str) -> ConditionFunctionTable:
    """
    Build the name -> ``(params) => expr`` table from raw source text.

    Only single-expression arrow functions are collected; block bodies are
    skipped. A later declaration with the same name replaces an earlier one.

    Args:
        text: Raw source text

    Returns:
        Mapping of function name to reconstructed source
    """
    table: ConditionFunctionTable = {}
    for match in _ARROW_FUNCTION_RE.finditer(strip_comments(text)):
        params = clean_parameter_list(match.group("params"))
        body = normalize_expression(match.group("body"))
        if body:
            table[match.group("name")] = f"({params}) => {body}"
    return table
