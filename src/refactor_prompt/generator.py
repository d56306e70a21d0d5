# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Refactor file generation from analysis verdicts."""

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from refactor_prompt.model import AnalyzedFunctionRecord

logger = logging.getLogger(__name__)

OutputMode = Literal["consolidated", "spliced"]
OUTPUT_MODES: tuple[OutputMode, ...] = ("consolidated", "spliced")

REFACTOR_MARKER = "REFACTOR:"

_WHITESPACE_PATTERN = re.compile(r"\s+")


class GenerationError(RuntimeError):
    """Represent a failure to write the refactor file."""


def refactor_path_for(file_path: Path) -> Path:
    """Return the sibling path with ``.refactor`` inserted before the extension."""
    return file_path.with_name(f"{file_path.stem}.refactor{file_path.suffix}")


def flatten_refactor_prompt(refactor_prompt: str | None) -> str:
    """Collapse a multi-line refactor prompt into one normalized line.

    Blank lines, code-fence lines and lines mentioning ``Module Context`` are dropped.
    """
    if not refactor_prompt:
        return ""
    kept = [
        line.strip()
        for line in refactor_prompt.splitlines()
        if line.strip()
        and "Module Context" not in line
        and not line.strip().startswith("```")
    ]
    return _WHITESPACE_PATTERN.sub(" ", " ".join(kept)).strip()


def flagged_records(
    analyzed_records: Sequence[AnalyzedFunctionRecord], descending: bool = False
) -> list[AnalyzedFunctionRecord]:
    """Return records flagged for refactor ordered by ``start_index``."""
    return sorted(
        (record for record in analyzed_records if record.needs_refactor),
        key=lambda record: record.start_index,
        reverse=descending,
    )


def render_consolidated(
    analyzed_records: Sequence[AnalyzedFunctionRecord], original_content: str
) -> str | None:
    """Render one whole-file refactor instruction followed by the original content.

    Args:
        analyzed_records: Analysis results for the file.
        original_content: Complete unmodified file content.

    Returns:
        Output text, or ``None`` when no record needs refactoring.
    """
    flagged = flagged_records(analyzed_records)
    if not flagged:
        return None
    instructions = "\n".join(
        f"{index}. Function '{record.name}': "
        f"{flatten_refactor_prompt(record.analysis.refactor_prompt)}"
        for index, record in enumerate(flagged, start=1)
    )
    return (
        f"Refactor the following file, focusing on these {len(flagged)} functions:\n\n"
        f"{instructions}\n\n"
        f"FILE CONTENT:\n{original_content}\n\n"
        "Return only the complete refactored code, maintaining the same exports "
        "and core functionality."
    )


def render_refactor_comment(refactor_prompt: str) -> str:
    """Render a refactor prompt as a ``REFACTOR:`` documentation comment block.

    Comment terminators inside the prompt are escaped so the block stays closed.
    """
    escaped = refactor_prompt.replace("*/", "*\\/")
    comment_lines = "\n".join(f" * {line.strip()}" for line in escaped.split("\n"))
    return f"\n/**\n * {REFACTOR_MARKER}\n{comment_lines}\n */\n"


def render_spliced(
    analyzed_records: Sequence[AnalyzedFunctionRecord], original_content: str
) -> str:
    """Insert refactor comment blocks above each flagged function.

    Insertions run from the highest ``start_index`` down so offsets of the
    remaining records stay valid. Records flagged without a prompt are skipped.

    Args:
        analyzed_records: Analysis results for the file.
        original_content: Complete unmodified file content.

    Returns:
        Content with comment blocks inserted; equal to ``original_content``
        when nothing is flagged.
    """
    content = original_content
    for record in flagged_records(analyzed_records, descending=True):
        refactor_prompt = record.analysis.refactor_prompt
        if not refactor_prompt:
            logger.debug(f"Skipping flagged function without prompt (name={record.name})")
            continue
        content = (
            content[: record.start_index]
            + render_refactor_comment(refactor_prompt)
            + content[record.start_index :]
        )
    return content


def generate(
    file_path: Path,
    analyzed_records: Sequence[AnalyzedFunctionRecord],
    original_content: str,
    mode: OutputMode = "consolidated",
) -> Path | None:
    """Write the refactor file next to the analyzed file.

    Args:
        file_path: Path of the analyzed file.
        analyzed_records: Analysis results for the file.
        original_content: Complete unmodified file content.
        mode: ``consolidated`` for one instruction block plus content,
            ``spliced`` for inline comment blocks.

    Returns:
        Path of the written file, or ``None`` when no record needs refactoring
        and nothing was written.

    Raises:
        ValueError: If ``mode`` is unknown.
        GenerationError: If the output file cannot be written.
    """
    if mode not in OUTPUT_MODES:
        raise ValueError(f"Unsupported output mode: {mode}")
    if not flagged_records(analyzed_records):
        logger.info(f"No functions flagged; refactor file not written (file_path={file_path})")
        return None

    if mode == "consolidated":
        output = render_consolidated(analyzed_records, original_content) or ""
    else:
        output = render_spliced(analyzed_records, original_content)

    refactor_path = refactor_path_for(file_path)
    try:
        refactor_path.write_text(output, encoding="utf-8")
    except OSError as exc:
        logger.warning(
            f"Failed to write refactor file (output_path={refactor_path} error={exc})"
        )
        raise GenerationError(f"Failed to generate refactor file: {exc}") from exc
    logger.info(f"Refactor file written (output_path={refactor_path} mode={mode})")
    return refactor_path
