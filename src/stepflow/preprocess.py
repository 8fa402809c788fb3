"""
TypeScript-to-JavaScript approximation for the grammar fallback.

This is a heuristic normalization pass, not a type-aware transform: each
substitution is a regex (or a regex plus a brace-balanced cut) and can
over- or under-strip. Its only job is to raise the odds that the JavaScript
grammar accepts the text.
"""

import re

from .textscan import clean_parameter_list, find_matching, strip_comments

# ============================================================
# MODULE SYNTAX
# ============================================================

# import x from 'y';  import { a,\n b } from "y";  import type T from 'y';  import 'y';
_IMPORT_RE = re.compile(
    r"^[ \t]*import\b(?:[^;'\"`]*?\bfrom\s*)?(?:'[^'\n]*'|\"[^\"\n]*\")[ \t]*;?",
    re.M,
)
# Anything else that starts like an import statement, up to ';' or end of line
_IMPORT_LINE_RE = re.compile(r"^[ \t]*import\s+[^;\n]*;?", re.M)

_EXPORT_LIST_RE = re.compile(
    r"^[ \t]*export\s*(?:type\s*)?(?:\{[^}]*\}|\*(?:\s*as\s+[\w$]+)?)"
    r"\s*(?:from\s*(?:'[^'\n]*'|\"[^\"\n]*\"))?[ \t]*;?",
    re.M,
)
_EXPORT_KEYWORD_RE = re.compile(r"(?<![\w$.])export\s+(?:default\s+)?")

# ============================================================
# TYPE SYNTAX
# ============================================================

# const name: Type = ...   /   let name: Type;
_VARIABLE_ANNOTATION_RE = re.compile(
    r"\b(const|let|var)(\s+[\w$]+)\s*:\s*(?:[^=;\n]|=>)+?(?=\s*(?:=(?![=>])|;|$))",
    re.M,
)

_INTERFACE_RE = re.compile(
    r"^[ \t]*(?:export\s+)?(?:declare\s+)?interface\s+[\w$]+[^{;]*\{", re.M
)
_TYPE_ALIAS_RE = re.compile(
    r"^[ \t]*(?:export\s+)?(?:declare\s+)?type\s+[\w$]+\s*(?:<[^>\n]*>)?\s*=\s*", re.M
)

_AS_CONST_RE = re.compile(r"\s+as\s+const\b")
_SATISFIES_RE = re.compile(r"\s+satisfies\s+[\w$.]+(?:<[^>\n]*>)?(?:\[\])*")
_NON_NULL_RE = re.compile(r"([\w$)\]])!(?=\.)")

# (params)[: Ret] =>
_ARROW_SIGNATURE_RE = re.compile(r"\(([^()]*)\)\s*(?::\s*[^=;{()]+?)?\s*=>")
# function name(params)[: Ret] {
_FUNCTION_SIGNATURE_RE = re.compile(
    r"\b(function\b\s*\*?\s*[\w$]*\s*)\(([^()]*)\)\s*(?::\s*[^{;]+?)?\s*\{"
)

_NAMESPACE_RE = re.compile(r"(?<![\w$.])(?:declare\s+)?namespace\s+[\w$.]+\s*\{")
_DECLARE_BLOCK_RE = re.compile(r"^[ \t]*declare\s+[^;\n{]*\{", re.M)
_DECLARE_RE = re.compile(r"^[ \t]*declare\s+[^;\n]*;?", re.M)

_TRAILING_SEMICOLON_RE = re.compile(r"[ \t]*;")


def preprocess_source(text: str, keep_exports: bool = False) -> str:
    """
    Strip module and type syntax so a JavaScript grammar has a chance.

    Args:
        text: Raw source text
        keep_exports: Leave export statements in place (the strict
            exported-steps parser needs them)

    Returns:
        Best-effort plain JavaScript
    """
    code = _IMPORT_RE.sub("", text)
    code = _IMPORT_LINE_RE.sub("", code)
    if not keep_exports:
        code = _EXPORT_LIST_RE.sub("", code)
        code = _EXPORT_KEYWORD_RE.sub("", code)
    code = strip_comments(code)
    code = _VARIABLE_ANNOTATION_RE.sub(r"\1\2", code)
    code = _drop_braced(code, _INTERFACE_RE)
    code = _drop_type_aliases(code)
    code = _AS_CONST_RE.sub("", code)
    code = _SATISFIES_RE.sub("", code)
    code = _NON_NULL_RE.sub(r"\1", code)
    code = _ARROW_SIGNATURE_RE.sub(
        lambda m: f"({clean_parameter_list(m.group(1))}) =>", code
    )
    code = _FUNCTION_SIGNATURE_RE.sub(
        lambda m: f"{m.group(1)}({clean_parameter_list(m.group(2))}) {{", code
    )
    code = _unwrap_namespaces(code)
    code = _drop_braced(code, _DECLARE_BLOCK_RE)
    code = _DECLARE_RE.sub("", code)
    return code


def _drop_braced(text: str, header_re: "re.Pattern", keep_body: bool = False) -> str:
    """Remove every construct whose header (ending in '{') matches ``header_re``.

    With ``keep_body`` the text between the braces is retained.
    """
    out = []
    pos = 0
    while True:
        m = header_re.search(text, pos)
        if not m:
            break
        open_pos = m.end() - 1
        close_pos = find_matching(text, open_pos)
        if close_pos < 0:
            break
        out.append(text[pos:m.start()])
        if keep_body:
            out.append(text[open_pos + 1:close_pos])
        end = close_pos + 1
        semi = _TRAILING_SEMICOLON_RE.match(text, end)
        pos = semi.end() if semi else end
    out.append(text[pos:])
    return "".join(out)


def _unwrap_namespaces(text: str) -> str:
    # Nested namespaces surface one level per pass
    while True:
        unwrapped = _drop_braced(text, _NAMESPACE_RE, keep_body=True)
        if unwrapped == text:
            return text
        text = unwrapped


def _drop_type_aliases(text: str) -> str:
    """Remove ``type Name = ...`` up to ';' or the end of its last line.

    Lines starting with '|' or '&' continue a union or intersection.
    """
    out = []
    pos = 0
    while True:
        m = _TYPE_ALIAS_RE.search(text, pos)
        if not m:
            break
        end = _type_alias_end(text, m.end())
        out.append(text[pos:m.start()])
        pos = end
    out.append(text[pos:])
    return "".join(out)


_CLOSERS = {"{": "}", "(": ")", "[": "]", "<": ">"}


def _type_alias_end(text: str, i: int) -> int:
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == ";":
            return i + 1
        if ch in _CLOSERS:
            close = find_matching(text, i, ch, _CLOSERS[ch])
            if close < 0:
                return n
            i = close + 1
            continue
        if ch == "\n":
            rest = text[i + 1:].lstrip(" \t")
            if not rest.startswith(("|", "&")):
                return i
        i += 1
    return n
