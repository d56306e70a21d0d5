# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the refactor prompt CLI driver."""

import io
from collections.abc import Iterator
from pathlib import Path

from cli.refactor_cli import run
from refactor_prompt.llm_client import ChatMessage

SINGLE_FUNCTION_SOURCE = "\n".join(
    [
        "import fs from 'fs';",
        "",
        "function check(value) {",
        "  return value > 0;",
        "}",
        "",
    ]
)


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class _StubChatClient:
    def __init__(self, response: str) -> None:
        self._response = response
        self.calls: list[list[ChatMessage]] = []

    def chat(self, messages: list[ChatMessage], stream: bool = True) -> Iterator[str]:
        self.calls.append(messages)
        midpoint = len(self._response) // 2
        return iter([self._response[:midpoint], self._response[midpoint:]])


def _patch_client(monkeypatch, client: _StubChatClient) -> None:
    monkeypatch.setattr("cli.refactor_cli.build_chat_client", lambda config: client)


def test_cli_001_help_prints_usage_and_exits_zero() -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(["--help"], stdout=stdout, stderr=stderr)

    assert exit_code == 0
    assert "usage: refactor-prompt" in stdout.getvalue()
    assert "custom_prompt" in stdout.getvalue()


def test_cli_002_missing_file_path_prints_usage_and_exits_one() -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run([], stdout=stdout, stderr=stderr)

    assert exit_code == 1
    assert "usage: refactor-prompt" in stderr.getvalue()


def test_cli_003_unreadable_file_reports_error(tmp_path: Path) -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run([str(tmp_path / "missing.js")], stdout=stdout, stderr=stderr)

    assert exit_code == 1
    assert stderr.getvalue().startswith("Error: Failed to extract functions")


def test_cli_004_file_without_functions_needs_no_refactoring(
    tmp_path: Path, monkeypatch
) -> None:
    source_file = tmp_path / "constants.js"
    _write_file(source_file, "export const LIMIT = 10;\n")
    client = _StubChatClient('{"needsRefactor": true, "refactorPrompt": "x"}')
    _patch_client(monkeypatch, client)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run([str(source_file)], stdout=stdout, stderr=stderr)

    assert exit_code == 0
    assert "Found 0 functions to analyze" in stdout.getvalue()
    assert "No functions require refactoring!" in stdout.getvalue()
    assert client.calls == []
    assert not (tmp_path / "constants.refactor.js").exists()


def test_cli_005_flagged_function_is_written_to_refactor_file(
    tmp_path: Path, monkeypatch
) -> None:
    source_file = tmp_path / "sample.js"
    _write_file(source_file, SINGLE_FUNCTION_SOURCE)
    _patch_client(
        monkeypatch,
        _StubChatClient('{"needsRefactor": true, "refactorPrompt": "Add input validation."}'),
    )
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run([str(source_file), "--batch-delay", "0"], stdout=stdout, stderr=stderr)

    assert exit_code == 0
    refactor_file = tmp_path / "sample.refactor.js"
    assert refactor_file.exists()
    content = refactor_file.read_text(encoding="utf-8")
    assert "1. Function 'check': Add input validation." in content
    assert f"FILE CONTENT:\n{SINGLE_FUNCTION_SOURCE}" in content
    output = stdout.getvalue()
    assert "Processing batch 1/1..." in output
    assert f"Refactoring prompts have been written to: {refactor_file}" in output
    assert "Found 1 function(s) that need refactoring." in output


def test_cli_006_custom_requirement_reaches_the_model_verbatim(
    tmp_path: Path, monkeypatch
) -> None:
    source_file = tmp_path / "sample.js"
    _write_file(source_file, SINGLE_FUNCTION_SOURCE)
    client = _StubChatClient('{"needsRefactor": false, "refactorPrompt": null}')
    _patch_client(monkeypatch, client)
    stdout = io.StringIO()
    stderr = io.StringIO()
    requirement = "Check for proper TypeScript types"

    exit_code = run(
        [str(source_file), requirement, "--batch-delay", "0"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    assert len(client.calls) == 1
    user_content = client.calls[0][1]["content"]
    assert f"Additional requirements:\n{requirement}" in user_content
    assert f"- Additional requirements: {requirement}" in stdout.getvalue()
    assert "No functions require refactoring!" in stdout.getvalue()


def test_cli_007_spliced_mode_annotates_copy_of_source(
    tmp_path: Path, monkeypatch
) -> None:
    source_file = tmp_path / "sample.js"
    _write_file(source_file, SINGLE_FUNCTION_SOURCE)
    _patch_client(
        monkeypatch,
        _StubChatClient('{"needsRefactor": true, "refactorPrompt": "Add input validation."}'),
    )
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [str(source_file), "--mode", "spliced", "--batch-delay", "0"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    content = (tmp_path / "sample.refactor.js").read_text(encoding="utf-8")
    assert (
        "/**\n * REFACTOR:\n * Add input validation.\n */\nfunction check(value) {"
        in content
    )
    assert source_file.read_text(encoding="utf-8") == SINGLE_FUNCTION_SOURCE


def test_cli_008_invalid_batch_size_is_rejected(tmp_path: Path) -> None:
    source_file = tmp_path / "sample.js"
    _write_file(source_file, SINGLE_FUNCTION_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [str(source_file), "--batch-size", "0"], stdout=stdout, stderr=stderr
    )

    assert exit_code == 1
    assert "batch-size must be > 0" in stderr.getvalue()


def test_cli_009_argument_errors_are_written_to_given_stderr(tmp_path: Path) -> None:
    source_file = tmp_path / "sample.js"
    _write_file(source_file, SINGLE_FUNCTION_SOURCE)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        [str(source_file), "--batch-size", "abc"], stdout=stdout, stderr=stderr
    )

    assert exit_code == 1
    assert "argument --batch-size: invalid int value: 'abc'" in stderr.getvalue()
    assert stdout.getvalue() == ""
