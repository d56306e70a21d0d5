# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for extracted and analyzed functions."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ModuleContext:
    """Represent the module text visible before one function.

    Attributes:
        imports: Import statements in order of appearance.
        declarations: Top-level binding and type declarations in order of appearance.
        full_context: All content preceding the function.
    """

    imports: tuple[str, ...] = ()
    declarations: tuple[str, ...] = ()
    full_context: str = ""


@dataclass(frozen=True)
class FunctionRecord:
    """Represent one extracted function span.

    Attributes:
        name: Declared or bound function name.
        code: Exact source text of the span, leading doc blocks included.
        start_index: Offset of the first character of the span.
        end_index: Offset one past the last character of the span.
        pre_text: Most recent ``REFACTOR:`` marker preceding the function, or ``""``.
        module_context: Imports and declarations visible before the span.
    """

    name: str
    code: str
    start_index: int
    end_index: int
    pre_text: str = ""
    module_context: ModuleContext = field(default_factory=ModuleContext)


@dataclass(frozen=True)
class AnalysisVerdict:
    """Represent the model decision for one function."""

    needs_refactor: bool = False
    refactor_prompt: str | None = None


DEFAULT_VERDICT = AnalysisVerdict()


@dataclass(frozen=True)
class AnalyzedFunctionRecord:
    """Represent a function record paired with its analysis verdict."""

    record: FunctionRecord
    analysis: AnalysisVerdict = DEFAULT_VERDICT

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def start_index(self) -> int:
        return self.record.start_index

    @property
    def needs_refactor(self) -> bool:
        return self.analysis.needs_refactor


@dataclass(frozen=True)
class ScanResult:
    """Represent the outcome of scanning one file.

    Attributes:
        functions: Extracted records sorted by ``start_index``.
        post_text: Content following the last extracted function.
        original_content: Complete unmodified file content.
    """

    functions: list[FunctionRecord]
    post_text: str
    original_content: str
