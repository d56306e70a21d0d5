from pathlib import Path

import pytest

from refactor_prompt.scanner import ExtractionError, extract_functions, find_closing, scan

SAMPLE_SOURCE = "\n".join(
    [
        "import fs from 'fs/promises';",
        "import path from 'path';",
        "",
        "const BATCH_SIZE = 1;",
        "",
        "/**",
        " * Adds numbers.",
        " */",
        "function add(a, b) {",
        "  return a + b;",
        "}",
        "",
        "const greet = async (name) => {",
        "  if (name) {",
        "    return `hi ${name}`;",
        "  }",
        "  return 'hi';",
        "};",
        "",
        "async function nested(items) {",
        "  for (const item of items) {",
        "    if (item) {",
        "      const inner = { value: { deep: item } };",
        "      console.log(inner);",
        "    }",
        "  }",
        "}",
        "",
        "export { add, greet, nested };",
        "",
    ]
)


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_scn_001_scan_extracts_declared_and_bound_functions_in_order() -> None:
    records = scan(SAMPLE_SOURCE)

    assert [record.name for record in records] == ["add", "greet", "nested"]
    assert records[0].code.startswith("/**\n * Adds numbers.")
    assert records[0].code.endswith("return a + b;\n}")
    assert records[1].code.endswith("return 'hi';\n}")
    assert records[2].code.startswith("async function nested(items) {")


def test_scn_002_scan_spans_are_sorted_and_non_overlapping() -> None:
    records = scan(SAMPLE_SOURCE)

    for record in records:
        assert SAMPLE_SOURCE[record.start_index : record.end_index] == record.code
    for previous, current in zip(records, records[1:]):
        assert previous.start_index < current.start_index
        assert previous.end_index <= current.start_index


def test_scn_003_gaps_and_spans_reconstruct_original_content(tmp_path: Path) -> None:
    source_file = tmp_path / "sample.js"
    _write_file(source_file, SAMPLE_SOURCE)

    result = extract_functions(source_file)

    rebuilt = ""
    cursor = 0
    for record in result.functions:
        rebuilt += SAMPLE_SOURCE[cursor : record.start_index] + record.code
        cursor = record.end_index
    rebuilt += result.post_text

    assert rebuilt == SAMPLE_SOURCE
    assert result.original_content == SAMPLE_SOURCE
    assert result.post_text == "\n\nexport { add, greet, nested };\n"


def test_scn_004_scan_captures_deeply_nested_bodies_whole() -> None:
    records = scan(SAMPLE_SOURCE)
    nested = records[2]

    assert nested.code.endswith("      console.log(inner);\n    }\n  }\n}")


def test_scn_005_braces_inside_strings_and_comments_do_not_end_body() -> None:
    source = "\n".join(
        [
            "function tricky() {",
            '  const close = "}";',
            "  const open = '{';",
            "  // }",
            "  /* { */",
            "  return `${close}`;",
            "}",
            "",
        ]
    )

    records = scan(source)

    assert len(records) == 1
    assert records[0].code == source.rstrip("\n")


def test_scn_006_file_without_functions_yields_empty_sequence() -> None:
    source = "const total = (1 + 2) * 3;\nconst double = (x) => x * 2;\n"

    assert scan(source) == []


def test_scn_007_expression_bodied_arrow_is_skipped_but_later_function_found() -> None:
    source = "const double = (x) => x * 2;\nfunction later() {}\n"

    records = scan(source)

    assert [record.name for record in records] == ["later"]
    assert records[0].code == "function later() {}"


def test_scn_008_typescript_return_annotation_and_export_are_supported() -> None:
    source = "\n".join(
        [
            "export async function load(path: string): Promise<string> {",
            "  return path;",
            "}",
            "const typed = (a: number): string => {",
            "  return String(a);",
            "};",
        ]
    )

    records = scan(source)

    assert [record.name for record in records] == ["load", "typed"]
    assert records[0].code.startswith("export async function load")
    assert records[0].start_index == 0


def test_scn_009_refactor_marker_is_recorded_as_pre_text() -> None:
    marker = "/**\n * REFACTOR:\n * Add validation.\n */"
    source = "\n".join(
        [
            "function first() {",
            "  return 1;",
            "}",
            marker,
            "function check(value) {",
            "  return value > 0;",
            "}",
        ]
    )

    records = scan(source)

    assert records[0].pre_text == ""
    assert records[1].name == "check"
    assert records[1].pre_text == marker


def test_scn_010_module_context_is_computed_from_text_before_function() -> None:
    records = scan(SAMPLE_SOURCE)
    add = records[0]

    assert add.module_context.imports == (
        "import fs from 'fs/promises';",
        "import path from 'path';",
    )
    assert add.module_context.declarations == ("const BATCH_SIZE = 1;",)
    assert add.module_context.full_context == SAMPLE_SOURCE[: add.start_index]


def test_scn_011_scan_rejects_non_string_content() -> None:
    with pytest.raises(TypeError):
        scan(None)  # type: ignore[arg-type]


def test_scn_012_extract_functions_wraps_read_failures(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError, match="Failed to extract functions"):
        extract_functions(tmp_path / "missing.js")


def test_scn_013_find_closing_returns_none_when_unbalanced() -> None:
    assert find_closing("{ { }", 0, "{", "}") is None
    assert find_closing("(a, (b))", 0, "(", ")") == 8


def test_scn_014_return_annotation_with_object_type_keeps_whole_body() -> None:
    content = "function a(x): Promise<{ ok: boolean }> {\n  return run(x);\n}\n"

    records = scan(content)

    assert len(records) == 1
    assert records[0].code == "function a(x): Promise<{ ok: boolean }> {\n  return run(x);\n}"


def test_scn_015_object_literal_return_type_is_not_mistaken_for_body() -> None:
    content = "function pair(): { left: number; right: number } {\n  return { left: 1, right: 2 };\n}\n"

    records = scan(content)

    assert [record.name for record in records] == ["pair"]
    assert records[0].end_index == len(content) - 1


def test_scn_016_generic_functions_are_extracted() -> None:
    content = "\n".join(
        [
            "export async function fetchData<T>(url: string): Promise<T> {",
            "  const response = await fetch(url);",
            "  return response.json() as T;",
            "}",
            "",
            "const identity = <T,>(value: T): T => {",
            "  return value;",
            "};",
            "",
            "function mapKeys<K extends string, V>(input: Map<K, V>): K[] {",
            "  return [...input.keys()];",
            "}",
            "",
        ]
    )

    records = scan(content)

    assert [record.name for record in records] == ["fetchData", "identity", "mapKeys"]
    assert records[0].code.startswith("export async function fetchData<T>(")
    assert records[0].code.endswith("return response.json() as T;\n}")
    assert records[1].code.endswith("return value;\n}")
