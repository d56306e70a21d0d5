# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Function extraction from JavaScript and TypeScript sources."""

import logging
import re
from pathlib import Path

from refactor_prompt.context import extract_context
from refactor_prompt.model import FunctionRecord, ScanResult

logger = logging.getLogger(__name__)

_IDENTIFIER = r"[A-Za-z_$][\w$]*"

FUNCTION_HEADER_PATTERN = re.compile(
    r"(?:/\*\*(?:[^*]|\*(?!/))*\*/\s*)*"
    r"(?P<declaration>\b(?:export\s+(?:default\s+)?)?(?:async\s+)?"
    r"(?:function\b\s*\*?\s*(?P<declared>" + _IDENTIFIER + r")"
    r"|(?:const|let|var)\s+(?P<bound>" + _IDENTIFIER + r")\s*=\s*(?:async\b\s*)?"
    r"(?P<expression>function\b\s*\*?\s*(?:" + _IDENTIFIER + r")?)?))"
    r"\s*(?=[(<])"
)

# characters after which a `{` starts an object type rather than the body
_TYPE_LITERAL_LEADERS = ":|&"

REFACTOR_MARKER_PATTERN = re.compile(r"/\*\*\s*\n\s*\*\s*REFACTOR:(?:[^*]|\*(?!/))*\*/")


class ExtractionError(RuntimeError):
    """Represent a failure to read or scan a source file."""


def scan(content: str) -> list[FunctionRecord]:
    """Locate function definitions in source text.

    Scanning resumes after the end of each accepted function, so functions
    nested inside another function body are not reported separately.

    Args:
        content: Raw file content.

    Returns:
        Function records sorted by ``start_index`` with non-overlapping spans.

    Raises:
        TypeError: If ``content`` is not a string.
    """
    if not isinstance(content, str):
        raise TypeError("Invalid argument: content must be str")

    records: list[FunctionRecord] = []
    position = 0
    while True:
        match = FUNCTION_HEADER_PATTERN.search(content, position)
        if match is None:
            break
        end_index = _match_function_end(content, match)
        if end_index is None:
            position = match.end()
            continue

        name = match.group("declared") or match.group("bound")
        marker_region = content[position : match.start("declaration")]
        markers = REFACTOR_MARKER_PATTERN.findall(marker_region)
        records.append(
            FunctionRecord(
                name=name,
                code=content[match.start() : end_index],
                start_index=match.start(),
                end_index=end_index,
                pre_text=markers[-1] if markers else "",
                module_context=extract_context(content, match.start()),
            )
        )
        position = end_index

    return sorted(records, key=lambda record: record.start_index)


def extract_functions(file_path: Path) -> ScanResult:
    """Read a source file and extract its functions.

    Args:
        file_path: Path of the file to scan.

    Returns:
        Scan result holding the records and the original content.

    Raises:
        ExtractionError: If the file cannot be read, decoded or scanned.
    """
    try:
        content = file_path.read_text(encoding="utf-8")
        functions = scan(content)
    except (OSError, UnicodeDecodeError, TypeError, ValueError) as exc:
        logger.warning(f"Function extraction failed (file_path={file_path} error={exc})")
        raise ExtractionError(f"Failed to extract functions: {exc}") from exc

    last_end = functions[-1].end_index if functions else 0
    logger.info(
        f"Function extraction completed (file_path={file_path} functions={len(functions)})"
    )
    return ScanResult(
        functions=functions,
        post_text=content[last_end:],
        original_content=content,
    )


def _match_function_end(content: str, match: re.Match[str]) -> int | None:
    """Return the offset just past the function body, or ``None`` if not a function."""
    params_start = match.end()
    if content[params_start] == "<":
        type_params_end = find_closing(content, params_start, "<", ">")
        if type_params_end is None:
            return None
        params_start = _skip_whitespace(content, type_params_end)
        if not content.startswith("(", params_start):
            return None
    params_end = find_closing(content, params_start, "(", ")")
    if params_end is None:
        return None
    is_arrow = match.group("bound") is not None and match.group("expression") is None
    body_open = _find_body_open(content, params_end, is_arrow)
    if body_open is None:
        return None
    return find_closing(content, body_open, "{", "}")


def _find_body_open(content: str, index: int, is_arrow: bool) -> int | None:
    """Return the offset of the ``{`` opening the body after a parameter list.

    An optional TypeScript return annotation is skipped. Arrow functions must
    reach ``=>`` before the body; declarations and function expressions must not.
    """
    index = _skip_whitespace(content, index)
    if content.startswith(":", index):
        index = _skip_return_annotation(content, index + 1, is_arrow)
        if index is None:
            return None
    if is_arrow:
        if not content.startswith("=>", index):
            return None
        index = _skip_whitespace(content, index + 2)
    if content.startswith("{", index):
        return index
    return None


def _skip_return_annotation(content: str, index: int, stop_at_arrow: bool) -> int | None:
    """Return the offset where a return annotation starting at ``index`` ends.

    Angle brackets, parentheses, brackets and braces are tracked so that
    annotations such as ``Promise<{ ok: boolean }>`` are consumed whole. The
    annotation ends at the first top-level ``=>`` when ``stop_at_arrow`` is
    set, otherwise at the first top-level ``{`` that cannot start an object
    type. ``None`` means the text is not a function signature.
    """
    depth = 0
    previous = ":"
    length = len(content)
    while index < length:
        char = content[index]
        if char in "\"'`":
            index = _skip_string(content, index)
            previous = char
            continue
        if content.startswith("=>", index):
            if depth == 0 and stop_at_arrow:
                return index
            index += 2
            previous = ">"
            continue
        if depth == 0:
            if char == "{" and previous not in _TYPE_LITERAL_LEADERS:
                return index
            if char in ";=":
                return None
        if char in "<({[":
            depth += 1
        elif char in ">)}]":
            depth -= 1
            if depth < 0:
                return None
        if not char.isspace():
            previous = char
        index += 1
    return None


def _skip_whitespace(content: str, index: int) -> int:
    length = len(content)
    while index < length and content[index].isspace():
        index += 1
    return index


def find_closing(content: str, open_index: int, opener: str, closer: str) -> int | None:
    """Find the offset just past the delimiter closing the one at ``open_index``.

    String literals, template literals and comments are skipped so delimiters
    inside them do not affect the nesting depth.

    Args:
        content: Source text.
        open_index: Offset of the opening delimiter.
        opener: Opening delimiter character.
        closer: Closing delimiter character.

    Returns:
        Offset after the matching closer, or ``None`` when unbalanced.
    """
    depth = 0
    index = open_index
    length = len(content)
    while index < length:
        char = content[index]
        if char in "\"'`":
            index = _skip_string(content, index)
            continue
        if content.startswith("//", index):
            newline = content.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if content.startswith("/*", index):
            comment_end = content.find("*/", index + 2)
            index = length if comment_end == -1 else comment_end + 2
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return None


def _skip_string(content: str, index: int) -> int:
    """Return the offset just past the string literal starting at ``index``."""
    quote = content[index]
    position = index + 1
    length = len(content)
    while position < length:
        char = content[position]
        if char == "\\":
            position += 2
            continue
        if char == quote:
            return position + 1
        # unterminated single-line literal
        if char == "\n" and quote != "`":
            return position + 1
        position += 1
    return length
