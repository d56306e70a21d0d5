# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analysis prompt construction."""

DEFAULT_ANALYSIS_PROMPT = """Analyze the following function for clarity, correctness, and efficiency.
Determine if it needs refactoring. If it does, provide a specific prompt that would guide an AI
to refactor it appropriately. Consider:
- Function complexity and documentation
- Pure function principles and error handling
- Performance implications
- Edge cases and potential bugs
- Common logical errors (off-by-one, type issues, etc.)
- Security risks and input validation"""

RESPONSE_FORMAT_INSTRUCTION = """Return your analysis in this exact JSON format without any markdown formatting or code blocks:
{
  "needsRefactor": boolean,
  "refactorPrompt": string or null
}"""


def build_prompt(user_requirement: str | None = None) -> str:
    """Build the analysis instruction sent with every function.

    Args:
        user_requirement: Optional free-text requirement appended verbatim.

    Returns:
        Rubric, optional ``Additional requirements`` section and JSON response format.
    """
    requirement_section = (
        f"\nAdditional requirements:\n{user_requirement}" if user_requirement else ""
    )
    return f"{DEFAULT_ANALYSIS_PROMPT}{requirement_section}\n\n{RESPONSE_FORMAT_INSTRUCTION}"
