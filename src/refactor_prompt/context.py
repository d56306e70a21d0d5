# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Module context extraction for function analysis requests."""

import logging
import re

from refactor_prompt.model import ModuleContext

logger = logging.getLogger(__name__)

IMPORT_PATTERN = re.compile(
    r"^[ \t]*(?:"
    r"import\b(?:[\s\w*${},]*?\bfrom\b)?\s*[\"'][@\w\-./]+[\"'].*?$"
    r"|(?:const|let|var)\s+[\w${},\s]+?=\s*require\(\s*[\"'][@\w\-./]+[\"']\s*\).*?$"
    r")",
    re.MULTILINE,
)

DECLARATION_PATTERN = re.compile(
    r"\b(?:const|let|var|type|interface)\s+[\w$]+\s*"
    r"(?:=\s*(?:\{[^}]*\}|[^;]+)|\{[^}]*\}|[^;{]+);?"
)


def extract_context(content: str, upto_offset: int) -> ModuleContext:
    """Collect imports and declarations visible before an offset.

    Args:
        content: Complete module content.
        upto_offset: Exclusive end of the visible slice.

    Returns:
        Module context for the slice ``content[:upto_offset]``.

    Raises:
        TypeError: If ``content`` is not a string or ``upto_offset`` is not an int.
        ValueError: If ``upto_offset`` lies outside the content.
    """
    if not isinstance(content, str) or isinstance(upto_offset, bool) or not isinstance(
        upto_offset, int
    ):
        raise TypeError(
            "Invalid arguments: content must be str and upto_offset must be int"
        )
    if upto_offset < 0 or upto_offset > len(content):
        raise ValueError(
            f"upto_offset out of range (upto_offset={upto_offset} length={len(content)})"
        )

    visible = content[:upto_offset]
    import_matches = list(IMPORT_PATTERN.finditer(visible))
    imports = tuple(match.group(0).strip() for match in import_matches)
    import_spans = [match.span() for match in import_matches]
    declarations = tuple(
        match.group(0).strip()
        for match in DECLARATION_PATTERN.finditer(visible)
        if not _inside_any(match.start(), import_spans)
    )
    logger.debug(
        f"Module context extracted (offset={upto_offset} imports={len(imports)} "
        f"declarations={len(declarations)})"
    )
    return ModuleContext(
        imports=imports, declarations=declarations, full_context=visible
    )


def _inside_any(position: int, spans: list[tuple[int, int]]) -> bool:
    """Return whether a position falls within one of the given spans."""
    return any(start <= position < end for start, end in spans)
