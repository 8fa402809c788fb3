"""Lexical helpers shared by the regex-based stages.

Everything here is string-literal aware: quotes, template literals and
comments are skipped as opaque spans so braces or operators inside them never
affect a scan.
"""

import re
from typing import Dict, List, Optional

# String literal in any of the three quote styles. Template literals may span
# lines; plain strings may not.
STRING_PATTERN = r"""
    "(?:[^"\\\n]|\\.)*"
  | '(?:[^'\\\n]|\\.)*'
  | `(?:[^`\\]|\\.)*`
"""

_STRING_RE = re.compile(STRING_PATTERN, re.S | re.X)

_LEXEME_RE = re.compile(
    r"(?P<string>" + STRING_PATTERN + r")"
    r"|(?P<comment>//[^\n]*|/\*.*?\*/)",
    re.S | re.X,
)

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}

# Operators that get one space on each side when normalizing an expression
_SPACED_OPERATOR_RE = re.compile(
    r"\s*(===|!==|==|!=|<=|>=|&&|\|\||\?\?|=>|(?<![<>=!])[<>](?![<>=]))\s*"
)

_OPENERS = {"(": ")", "[": "]", "{": "}"}


# ============================================================
# STRING LITERALS
# ============================================================


def _unescape_one(match: "re.Match") -> str:
    esc = match.group(1)
    try:
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc[0] == "u" and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc[0] == "x" and len(esc) == 3:
            return chr(int(esc[1:], 16))
    except ValueError:
        return match.group(0)
    if esc in _LINE_CONTINUATIONS:
        return ""
    return _SIMPLE_ESCAPES.get(esc, esc)


def unescape(body: str) -> str:
    """Resolve JavaScript escape sequences in a string literal body."""
    if "\\" not in body:
        return body
    return _ESCAPE_RE.sub(_unescape_one, body)


def string_literal_value(raw: str) -> Optional[str]:
    """Cooked value of a quoted literal.

    Template literals count only when they contain no substitutions.
    Returns None for anything that is not a complete literal.
    """
    if len(raw) < 2:
        return None
    quote = raw[0]
    if quote not in "\"'`" or raw[-1] != quote:
        return None
    body = raw[1:-1]
    if quote == "`" and "${" in body:
        return None
    return unescape(body)


# ============================================================
# SPANS AND SCANS
# ============================================================


def _opaque_match(text: str, i: int) -> Optional["re.Match"]:
    """String literal or comment starting at ``i``."""
    ch = text[i]
    if ch in "\"'`" or (ch == "/" and i + 1 < len(text) and text[i + 1] in "/*"):
        return _LEXEME_RE.match(text, i)
    return None


def innermost_enclosing(text: str, positions: List[int], open_char: str = "{",
                        close_char: str = "}") -> Dict[int, int]:
    """Offset of the innermost unclosed ``open_char`` for each sorted position.

    Positions inside a string or comment are dropped, as are positions at
    depth zero. A position at the very start of a string literal (a quoted
    key) still counts.
    """
    result: Dict[int, int] = {}
    stack: List[int] = []
    t = 0
    i = 0
    n = len(text)
    while i < n and t < len(positions):
        while t < len(positions) and positions[t] <= i:
            if stack:
                result[positions[t]] = stack[-1]
            t += 1

        m = _opaque_match(text, i)
        if m:
            while t < len(positions) and positions[t] < m.end():
                t += 1
            i = m.end()
            continue
        ch = text[i]
        if ch == open_char:
            stack.append(i)
        elif ch == close_char and stack:
            stack.pop()
        i += 1
    return result


def strip_comments(text: str) -> str:
    """Remove // and /* */ comments, leaving string literals untouched."""

    def keep_strings(match: "re.Match") -> str:
        return match.group("string") or ""

    return _LEXEME_RE.sub(keep_strings, text)


def find_matching(text: str, start: int, open_char: str = "{", close_char: str = "}") -> int:
    """Index of the bracket closing the one at ``start``, or -1.

    Manual depth count; strings and comments are skipped whole, so this
    bounds nested literals that a non-recursive regex cannot.
    """
    depth = 0
    i = start
    n = len(text)
    while i < n:
        m = _opaque_match(text, i)
        if m:
            i = m.end()
            continue
        ch = text[i]
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str, separator: str = ",", generics: bool = True) -> List[str]:
    """Split on ``separator`` where not nested in brackets, generics or strings.

    Pass ``generics=False`` for expression text, where ``<`` and ``>`` are
    comparisons rather than type argument brackets.
    """
    parts: List[str] = []
    depth = 0
    current_start = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in "\"'`":
            m = _STRING_RE.match(text, i)
            if m:
                i = m.end()
                continue
        if ch in _OPENERS or (generics and ch == "<"):
            depth += 1
        elif ch in ")]}" or (generics and ch == ">" and (i == 0 or text[i - 1] != "=")):
            depth = max(depth - 1, 0)
        elif ch == separator and depth == 0:
            parts.append(text[current_start:i])
            current_start = i + 1
        i += 1
    parts.append(text[current_start:])
    return parts


# ============================================================
# NORMALIZATION
# ============================================================

_PARAM_ANNOTATION_RE = re.compile(
    r"^(?P<name>\s*(?:\.\.\.)?\s*(?:[\w$]+|\{.*\}|\[.*\]))"
    r"\s*\??\s*:\s*.*?"
    r"(?P<default>\s*=(?![=>]).*)?$",
    re.S,
)


def clean_parameter_list(params: str) -> str:
    """Drop ``: Type`` annotations (and optional markers) from a parameter list."""
    if not params.strip():
        return ""
    cleaned = []
    for param in split_top_level(params):
        m = _PARAM_ANNOTATION_RE.match(param)
        if m:
            param = m.group("name") + (m.group("default") or "")
        param = param.strip()
        if param:
            cleaned.append(param)
    return ", ".join(cleaned)


def normalize_expression(text: str) -> str:
    """Collapse whitespace and space comparison/logical operators.

    String literal contents are preserved verbatim.
    """
    pieces = []
    pos = 0
    for m in _STRING_RE.finditer(text):
        pieces.append(_normalize_code(text[pos:m.start()]))
        pieces.append(m.group(0))
        pos = m.end()
    pieces.append(_normalize_code(text[pos:]))
    return "".join(pieces).strip()


def _normalize_code(segment: str) -> str:
    segment = re.sub(r"\s+", " ", segment)
    segment = _SPACED_OPERATOR_RE.sub(r" \1 ", segment)
    return re.sub(r" {2,}", " ", segment)
