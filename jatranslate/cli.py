"""Command-line entrypoint: translate text into Japanese.

Input comes from the positional arguments, or from stdin when no arguments
are given. The translation is printed to stdout once, after every chunk has
finished; progress and diagnostics go to stderr.

Exit code behavior:
- 0 when a translation was produced, even if some chunks show "[Error]"
- 1 for empty input, bad options, missing credentials or unexpected errors
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional, TextIO

from loguru import logger
from rich.console import Console
from rich.table import Table

from jatranslate.config import DEBUG
from jatranslate.llm.claude_client import ClaudeClient, ModelTier, get_claude_client, load_env_file_lenient
from jatranslate.pipeline.debug import DebugArtifactWriter
from jatranslate.pipeline.runner import (
    MODES,
    InputError,
    TranslationRun,
    TranslationSettings,
    translate_text,
)
from jatranslate.tracing import init_tracing


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jatranslate",
        description="Translate text into Japanese (draft, critique, refine).",
    )
    parser.add_argument(
        "text",
        nargs="*",
        help="Text to translate. Reads stdin until EOF when omitted.",
    )
    parser.add_argument(
        "-d",
        "--debug-dir",
        default=None,
        help="Write per-run debug files (input, prompts, per-chunk stages, metadata) under this folder",
    )
    parser.add_argument(
        "--run-name",
        default=None,
        help="Debug sub-folder name for this run (default: timestamp + run id)",
    )
    parser.add_argument(
        "--mode",
        choices=list(MODES),
        default="refine",
        help="refine: draft, critique and refine each chunk; single: one translation call per chunk",
    )
    parser.add_argument("--chunk-size", type=int, default=None, help="Maximum characters per chunk")
    parser.add_argument("--chunk-overlap", type=int, default=None, help="Characters repeated between chunks")
    parser.add_argument("--concurrency", type=int, default=None, help="Maximum chunks in flight")
    parser.add_argument("--max-retries", type=int, default=None, help="Retries per chunk after the first attempt")
    parser.add_argument("--initial-delay", type=float, default=None, help="Seconds before the first retry (doubles each time)")
    parser.add_argument(
        "--model",
        choices=["opus", "sonnet", "haiku"],
        default=None,
        help="Claude model tier (default: JATRANSLATE_MODEL or sonnet)",
    )
    parser.add_argument(
        "--refine-on-approval",
        action="store_true",
        help="Still call the refine stage when the critique reports no issues",
    )
    parser.add_argument("--show-usage", action="store_true", help="Print a token usage table to stderr")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug-level logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message}",
    )


def read_input(text_args: List[str], stdin: Optional[TextIO] = None) -> str:
    """Argument text wins; otherwise read stdin until EOF."""
    text = " ".join(text_args).strip()
    if text:
        return text

    stream = stdin if stdin is not None else sys.stdin
    if stream.isatty():
        logger.info("Waiting for input... (Ctrl+D to finish)")
    return stream.read()


def print_usage_table(
    run: TranslationRun,
    console: Optional[Console] = None,
    tier: Optional[ModelTier] = None,
) -> None:
    """Render the run's token usage; the cost row needs the pricing tier."""
    console = console or Console(stderr=True)
    table = Table(title="Token Usage")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    usage = run.usage.to_dict()
    table.add_row("Models", ", ".join(run.models) or "-")
    table.add_row("Chunks", str(len(run.outcomes)))
    table.add_row("Failed chunks", str(run.failed_chunks))
    table.add_row("Requests", str(usage["requests"]))
    table.add_row("Input tokens", f"{usage['input_tokens']:,}")
    table.add_row("Output tokens", f"{usage['output_tokens']:,}")
    table.add_row("Total tokens", f"{usage['total_tokens']:,}")
    if tier is not None:
        table.add_row("Estimated cost", f"${run.usage.estimate_cost(tier):.4f}")
    console.print(table)


async def _translate(
    text: str,
    client: ClaudeClient,
    settings: TranslationSettings,
    writer: Optional[DebugArtifactWriter],
) -> TranslationRun:
    try:
        return await translate_text(text, client, settings, debug_writer=writer)
    finally:
        await client.close()


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.verbose)
    load_env_file_lenient()

    try:
        text = read_input(args.text, stdin)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read input: {e}")
        return 1

    if not text.strip():
        logger.error("No input text provided.")
        return 1

    try:
        settings = TranslationSettings.from_env(
            chunk_size=args.chunk_size,
            chunk_overlap=args.chunk_overlap,
            concurrency_limit=args.concurrency,
            max_retries=args.max_retries,
            initial_delay=args.initial_delay,
            mode=args.mode,
            refine_on_approval=args.refine_on_approval or None,
        )
        settings.validate()
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        return 1

    try:
        client = get_claude_client(model=args.model)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    init_tracing()

    debug_dir = args.debug_dir or DEBUG.DEBUG_DIR
    writer = DebugArtifactWriter(debug_dir, run_name=args.run_name) if debug_dir else None

    try:
        run = asyncio.run(_translate(text, client, settings, writer))
    except InputError as e:
        logger.error(str(e))
        return 1
    except Exception:
        logger.exception("Unexpected error during translation")
        return 1

    sys.stdout.write(run.output + "\n")
    sys.stdout.flush()

    if args.show_usage:
        print_usage_table(run, tier=client.default_model)

    return 0


if __name__ == "__main__":
    sys.exit(main())
