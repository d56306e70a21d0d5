# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command-line driver for refactor prompt generation."""

import argparse
import contextlib
import logging
import sys
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

from refactor_prompt.analyzer import RefactorAnalyzer
from refactor_prompt.cache import ResponseCache
from refactor_prompt.config import PROVIDERS, RunConfig, load_api_key
from refactor_prompt.generator import OUTPUT_MODES, GenerationError, generate
from refactor_prompt.llm import OllamaChatClient, OpenAIChatClient
from refactor_prompt.llm_client import ChatClient, ChatError
from refactor_prompt.prompt import build_prompt
from refactor_prompt.scanner import ExtractionError, extract_functions

logger = logging.getLogger(__name__)

PROG = "refactor-prompt"

USAGE_EPILOG = f"""Example:
  {PROG} ./src/utils.js
  {PROG} ./src/utils.js "Check for proper TypeScript types"
"""


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser.

    Returns:
        Configured argument parser instance.
    """
    defaults = RunConfig(file_path=Path())
    parser = argparse.ArgumentParser(
        prog=PROG,
        add_help=False,
        description="Analyze functions with a chat model and write refactor prompts.",
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "file_path", nargs="?", help="Path to the JavaScript file to analyze."
    )
    parser.add_argument(
        "custom_prompt",
        nargs="?",
        help="Optional additional analysis requirements or feature requests.",
    )
    parser.add_argument(
        "-h", "--help", action="store_true", help="Show this help message and exit."
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        default=defaults.provider,
        help="Chat provider backend.",
    )
    parser.add_argument(
        "--provider-url",
        default=defaults.provider_url,
        help="Provider API endpoint URL.",
    )
    parser.add_argument("--model", default=defaults.model, help="Provider model name.")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=defaults.batch_size,
        help="Number of functions analyzed concurrently.",
    )
    parser.add_argument(
        "--batch-delay",
        type=float,
        default=defaults.batch_delay,
        help="Seconds to wait between batches.",
    )
    parser.add_argument(
        "--cache-ttl",
        type=float,
        default=defaults.cache_ttl,
        help="Response cache lifetime in seconds; 0 disables caching.",
    )
    parser.add_argument(
        "--mode",
        choices=OUTPUT_MODES,
        default=defaults.mode,
        help="consolidated: one refactor prompt plus file content; "
        "spliced: inline REFACTOR comments.",
    )
    parser.add_argument(
        "--api-key-file",
        type=Path,
        default=defaults.api_key_file,
        help="File holding the provider API key.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        with contextlib.redirect_stderr(stderr):
            args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 1
    if args.help:
        parser.print_help(file=stdout)
        return 0
    if not args.file_path:
        parser.print_help(file=stderr)
        return 1
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.batch_size <= 0:
        logger.warning(f"Invalid batch size (batch_size={args.batch_size})")
        stderr.write("Error: batch-size must be > 0\n")
        return 1
    if args.batch_delay < 0 or args.cache_ttl < 0:
        logger.warning(
            f"Invalid timing option (batch_delay={args.batch_delay} cache_ttl={args.cache_ttl})"
        )
        stderr.write("Error: batch-delay and cache-ttl must be >= 0\n")
        return 1

    config = RunConfig(
        file_path=Path(args.file_path),
        custom_prompt=args.custom_prompt,
        provider=args.provider,
        provider_url=args.provider_url,
        model=args.model,
        batch_size=args.batch_size,
        batch_delay=args.batch_delay,
        cache_ttl=args.cache_ttl,
        mode=args.mode,
        api_key_file=args.api_key_file,
    )
    try:
        return _run_refactor(config=config, stdout=stdout)
    except (ExtractionError, GenerationError, ChatError, OSError, ValueError) as exc:
        logger.warning(f"Refactor run failed (file_path={config.file_path} error={exc})")
        stderr.write(f"Error: {exc}\n")
        return 1


def _run_refactor(config: RunConfig, stdout: TextIO) -> int:
    """Run the scan, analyze and generate pipeline for one file.

    Args:
        config: Run settings.
        stdout: Standard output stream.

    Returns:
        Exit code.
    """
    console = Console(file=stdout, force_terminal=False, highlight=False)
    analysis_prompt = build_prompt(config.custom_prompt)
    scan_result = extract_functions(config.file_path)

    _emit(console, "Analysis configuration:")
    _emit(console, f"- File: {config.file_path}")
    _emit(console, f"- Found {len(scan_result.functions)} functions to analyze")
    _emit(console, f"- Processing in batches of {config.batch_size}")
    if config.custom_prompt:
        _emit(console, f"- Additional requirements: {config.custom_prompt}")

    cache = ResponseCache(ttl_seconds=config.cache_ttl) if config.cache_ttl > 0 else None
    analyzer = RefactorAnalyzer(
        chat_client=build_chat_client(config),
        cache=cache,
        batch_size=config.batch_size,
        batch_delay=config.batch_delay,
    )
    results = analyzer.analyze(
        scan_result.functions,
        analysis_prompt,
        on_batch=lambda number, total: _emit(
            console, f"\nProcessing batch {number}/{total}..."
        ),
    )

    refactor_path = generate(
        config.file_path, results, scan_result.original_content, mode=config.mode
    )
    if refactor_path is None:
        _emit(console, "\nNo functions require refactoring!")
        return 0

    refactor_count = sum(1 for result in results if result.needs_refactor)
    _emit(console, f"\nRefactoring prompts have been written to: {refactor_path}")
    _emit(console, f"Found {refactor_count} function(s) that need refactoring.")
    return 0


def _emit(console: Console, text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def build_chat_client(config: RunConfig) -> ChatClient:
    """Create the configured chat client.

    Args:
        config: Run settings.

    Returns:
        Configured chat client.
    """
    if config.provider == "ollama":
        return OllamaChatClient(provider_url=config.provider_url, model=config.model)
    return OpenAIChatClient(
        provider_url=config.provider_url,
        model=config.model,
        api_key=load_api_key(config.api_key_file),
    )


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
