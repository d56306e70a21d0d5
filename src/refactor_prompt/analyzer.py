# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Batch analysis of extracted functions with a chat model."""

import concurrent.futures
import json
import logging
import re
import time
from collections.abc import Callable, Sequence

from refactor_prompt.cache import ResponseCache, fingerprint
from refactor_prompt.llm_client import ChatClient, ChatError, ChatMessage
from refactor_prompt.model import (
    DEFAULT_VERDICT,
    AnalysisVerdict,
    AnalyzedFunctionRecord,
    FunctionRecord,
)

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = (
    "You are a code analysis assistant focused on functional programming principles "
    "and module-level context. Always return JSON without markdown formatting."
)

DEFAULT_BATCH_SIZE: int = 1
DEFAULT_BATCH_DELAY_SECONDS: float = 1.0

_CODE_FENCE_PATTERN = re.compile(r"```[\w+-]*[ \t]*")

ProgressCallback = Callable[[int, int], None]


class VerdictParseError(RuntimeError):
    """Represent a model response that does not hold a valid verdict."""


def chunk_records(
    records: Sequence[FunctionRecord], size: int
) -> list[list[FunctionRecord]]:
    """Split records into consecutive batches of at most ``size`` items.

    Raises:
        ValueError: If ``size`` is not greater than zero.
    """
    if size <= 0:
        raise ValueError("size must be > 0")
    return [list(records[index : index + size]) for index in range(0, len(records), size)]


def build_messages(record: FunctionRecord, prompt: str) -> list[ChatMessage]:
    """Build the system and user messages for one function.

    Args:
        record: Function to analyze.
        prompt: Analysis instruction.

    Returns:
        Two-message exchange embedding module context and function code.
    """
    context = record.module_context
    context_message = (
        "\nModule Imports:\n"
        + "\n".join(context.imports)
        + "\n\nModule-Level Declarations:\n"
        + "\n".join(context.declarations)
        + "\n\nFunction Definition:\n"
        + record.code
        + "\n"
    )
    return [
        {"role": "system", "content": SYSTEM_MESSAGE},
        {
            "role": "user",
            "content": f"{prompt}\n\nModule Context and Function to Analyze:\n{context_message}",
        },
    ]


def parse_verdict(response: str) -> AnalysisVerdict:
    """Parse the trailing JSON verdict out of a model response.

    Code-fence markers are removed first; the text between the first ``{``
    and the last ``}`` is then decoded as one JSON object. When that text is
    not valid JSON (for example because the response also carries code with
    braces), the last embedded object holding ``needsRefactor`` is used.

    Args:
        response: Accumulated model response text.

    Returns:
        Parsed verdict.

    Raises:
        VerdictParseError: If no object is found, the JSON is invalid, or the
            keys are missing or mistyped.
    """
    cleaned = _CODE_FENCE_PATTERN.sub("", response).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end < start:
        raise VerdictParseError("No valid JSON object found in response")
    try:
        payload = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        payload = _find_trailing_verdict_object(cleaned)
        if payload is None:
            raise VerdictParseError(f"Invalid JSON in response: {exc}") from exc
    if not isinstance(payload, dict):
        raise VerdictParseError("Response JSON is not an object")

    needs_refactor = payload.get("needsRefactor")
    refactor_prompt = payload.get("refactorPrompt")
    if not isinstance(needs_refactor, bool):
        raise VerdictParseError("needsRefactor must be a boolean")
    if refactor_prompt is not None and not isinstance(refactor_prompt, str):
        raise VerdictParseError("refactorPrompt must be a string or null")
    return AnalysisVerdict(needs_refactor=needs_refactor, refactor_prompt=refactor_prompt)


def _find_trailing_verdict_object(text: str) -> dict[str, object] | None:
    """Return the last decodable JSON object in ``text`` that has ``needsRefactor``."""
    decoder = json.JSONDecoder()
    found: dict[str, object] | None = None
    index = text.find("{")
    while index != -1:
        try:
            candidate, _ = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict) and "needsRefactor" in candidate:
            found = candidate
        index = text.find("{", index + 1)
    return found


class RefactorAnalyzer:
    """Analyze function records in fixed-size batches."""

    def __init__(
        self,
        chat_client: ChatClient,
        cache: ResponseCache | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the analyzer.

        Args:
            chat_client: Provider client used for every request.
            cache: Optional response cache shared across requests.
            batch_size: Number of functions analyzed concurrently.
            batch_delay: Seconds to wait between consecutive batches.
            sleep: Blocking sleep function used for the inter-batch delay.

        Raises:
            ValueError: If ``batch_size`` is not greater than zero or
                ``batch_delay`` is negative.
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if batch_delay < 0:
            raise ValueError("batch_delay must be >= 0")
        self._chat_client = chat_client
        self._cache = cache
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sleep = sleep

    def analyze(
        self,
        records: Sequence[FunctionRecord],
        prompt: str,
        on_batch: ProgressCallback | None = None,
    ) -> list[AnalyzedFunctionRecord]:
        """Analyze all records batch by batch.

        Args:
            records: Function records in source order.
            prompt: Analysis instruction.
            on_batch: Called with ``(batch_number, batch_count)`` before each batch.

        Returns:
            Analyzed records in input order.
        """
        batches = chunk_records(records, self._batch_size)
        results: list[AnalyzedFunctionRecord] = []
        flagged = 0
        for number, batch in enumerate(batches, start=1):
            if on_batch is not None:
                on_batch(number, len(batches))
            batch_results = self.analyze_batch(batch, prompt)
            results.extend(batch_results)
            flagged += sum(1 for result in batch_results if result.needs_refactor)
            logger.info(
                "refactor_analysis_progress batch=%s total=%s flagged=%s",
                number,
                len(batches),
                flagged,
            )
            if number < len(batches) and self._batch_delay > 0:
                self._sleep(self._batch_delay)
        return results

    def analyze_batch(
        self, batch: Sequence[FunctionRecord], prompt: str
    ) -> list[AnalyzedFunctionRecord]:
        """Analyze one batch concurrently.

        Args:
            batch: Non-empty batch of function records.
            prompt: Non-empty analysis instruction.

        Returns:
            Analyzed records in the same order as ``batch``.

        Raises:
            ValueError: If ``batch`` or ``prompt`` is empty.
        """
        if not batch or not prompt:
            raise ValueError(
                "Invalid arguments: batch must be non-empty and prompt must be non-empty"
            )
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [
                executor.submit(self._analyze_function, record, prompt) for record in batch
            ]
            return [future.result() for future in futures]

    def _analyze_function(
        self, record: FunctionRecord, prompt: str
    ) -> AnalyzedFunctionRecord:
        messages = build_messages(record, prompt)
        response: str | None = None
        try:
            response = self._request(messages)
            verdict = parse_verdict(response)
        except (ChatError, VerdictParseError) as exc:
            logger.warning(
                f"Failed to analyze function (name={record.name} "
                f"start_index={record.start_index} error={exc})"
            )
            if response is not None:
                logger.warning(f"Raw response (name={record.name} response={response!r})")
            verdict = DEFAULT_VERDICT
        return AnalyzedFunctionRecord(record=record, analysis=verdict)

    def _request(self, messages: list[ChatMessage]) -> str:
        """Return the accumulated response text for one exchange."""
        key = fingerprint(*(message["content"] for message in messages))
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug(f"Serving response from cache (key={key})")
                return cached

        response = self._chat_client.chat(messages, stream=True)
        if isinstance(response, str):
            text = response
        else:
            text = "".join(response)

        if self._cache is not None:
            self._cache.set(key, text)
        return text
