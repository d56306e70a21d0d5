from refactor_prompt.prompt import (
    DEFAULT_ANALYSIS_PROMPT,
    RESPONSE_FORMAT_INSTRUCTION,
    build_prompt,
)


def test_prm_001_prompt_without_requirement_has_rubric_and_format() -> None:
    prompt = build_prompt(None)

    assert prompt.startswith(DEFAULT_ANALYSIS_PROMPT)
    assert prompt.endswith(RESPONSE_FORMAT_INSTRUCTION)
    assert "Additional requirements" not in prompt
    assert build_prompt("") == prompt


def test_prm_002_requirement_is_included_verbatim_under_heading() -> None:
    requirement = "Check for proper TypeScript types\n  and JSDoc {tags}"

    prompt = build_prompt(requirement)

    assert f"\nAdditional requirements:\n{requirement}\n" in prompt
    assert prompt.index("Additional requirements") < prompt.index('"needsRefactor"')


def test_prm_003_rubric_covers_all_assessment_areas() -> None:
    prompt = build_prompt()

    for topic in (
        "complexity and documentation",
        "error handling",
        "Performance",
        "Edge cases",
        "off-by-one",
        "input validation",
    ):
        assert topic in prompt
