"""Translation runner.

Chains the pipeline pieces into a single entrypoint:

    text -> split_text -> run_bounded(with_retry(chunk pipeline)) -> assemble

and records what happened on a ``TranslationRunContext``. Chunk failures
degrade the output (placeholder + degradation event) instead of failing the
run; only blank input and programming defects raise.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from loguru import logger

from jatranslate.config import CHUNKING, CONCURRENCY, RETRY
from jatranslate.llm.claude_client import GenerationCapability, TokenUsage
from jatranslate.pipeline.assembler import assemble
from jatranslate.pipeline.chunk_pipeline import (
    APPROVAL_MARKERS,
    ChunkOutcome,
    ChunkPipeline,
    SinglePassPipeline,
)
from jatranslate.pipeline.chunker import Chunk, split_text
from jatranslate.pipeline.context import TranslationRunContext
from jatranslate.pipeline.debug import DebugArtifactWriter
from jatranslate.pipeline.degradation import chunk_failure_event, summarize_degradations
from jatranslate.pipeline.retry import with_retry
from jatranslate.pipeline.scheduler import run_bounded
from jatranslate.pipeline.stages import StageRunner
from jatranslate.prompts.translation import (
    CRITIQUE_PROMPT,
    DRAFT_PROMPT,
    REFINE_PROMPT,
    SINGLE_PASS_PROMPT,
)


MODES = ("refine", "single")


class InputError(ValueError):
    """Raised when there is no text to translate."""


@dataclass(frozen=True)
class TranslationSettings:
    """Immutable per-run configuration."""

    chunk_size: int = 1000
    chunk_overlap: int = 0
    concurrency_limit: int = 3
    max_retries: int = 3
    initial_delay: float = 1.0
    mode: str = "refine"
    refine_on_approval: bool = False
    approval_markers: Tuple[str, ...] = APPROVAL_MARKERS

    @classmethod
    def from_env(cls, **overrides: Any) -> "TranslationSettings":
        """Settings from the config layer; ``None`` overrides are ignored."""
        values: Dict[str, Any] = {
            "chunk_size": CHUNKING.CHUNK_SIZE,
            "chunk_overlap": CHUNKING.CHUNK_OVERLAP,
            "concurrency_limit": CONCURRENCY.CONCURRENCY_LIMIT,
            "max_retries": RETRY.MAX_RETRIES,
            "initial_delay": RETRY.INITIAL_DELAY,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {self.chunk_overlap}"
            )
        if self.concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {self.concurrency_limit}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {self.initial_delay}")

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["approval_markers"] = list(self.approval_markers)
        return payload


@dataclass
class TranslationRun:
    """Everything a caller needs after a run."""

    output: str
    outcomes: List[ChunkOutcome]
    context: TranslationRunContext
    usage: TokenUsage = field(default_factory=TokenUsage)
    models: List[str] = field(default_factory=list)

    @property
    def failed_chunks(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)


def build_run_metadata(
    context: TranslationRunContext,
    runner: StageRunner,
    settings: TranslationSettings,
) -> Dict[str, Any]:
    return {
        "schema_version": "1.0",
        "created": datetime.now(timezone.utc).isoformat(),
        "models": sorted(runner.models),
        "usage": runner.usage.to_dict(),
        "settings": settings.to_dict(),
        "run": context.to_payload(),
        "degradation_summary": summarize_degradations(context.degradations),
    }


async def translate_text(
    text: str,
    generator: GenerationCapability,
    settings: Optional[TranslationSettings] = None,
    *,
    debug_writer: Optional[DebugArtifactWriter] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> TranslationRun:
    """Translate ``text`` into Japanese.

    Args:
        text: Source text. Must contain non-whitespace characters.
        generator: Generation capability shared by every stage call.
        settings: Run configuration (defaults from the config layer).
        debug_writer: Optional writer for the per-run debug file set.
        sleep: Backoff sleep override, used by tests.

    Returns:
        TranslationRun with the assembled output and per-chunk outcomes.

    Raises:
        InputError: When ``text`` is empty or whitespace.
        ValueError: When ``settings`` are out of range.
    """
    settings = settings or TranslationSettings.from_env()
    settings.validate()

    if not text or not text.strip():
        raise InputError("Input text is empty")

    context = TranslationRunContext(mode=settings.mode, input_chars=len(text))
    context.mark_checkpoint("start")
    logger.info(f"=== Translation started (input length: {len(text)} chars) ===")

    if debug_writer is not None:
        debug_writer.start(context.run_id)
        debug_writer.write_input(text)
        if settings.mode == "single":
            debug_writer.write_system_prompts([SINGLE_PASS_PROMPT])
        else:
            debug_writer.write_system_prompts([DRAFT_PROMPT, CRITIQUE_PROMPT, REFINE_PROMPT])

    chunks = split_text(text, settings.chunk_size, settings.chunk_overlap)
    context.chunk_count = len(chunks)
    context.mark_checkpoint("chunked")
    logger.info(f"Total chunks: {len(chunks)}")

    runner = StageRunner(generator)
    if settings.mode == "single":
        pipeline = SinglePassPipeline(runner)
    else:
        pipeline = ChunkPipeline(
            runner,
            refine_on_approval=settings.refine_on_approval,
            approval_markers=settings.approval_markers,
        )

    attempts: Dict[int, int] = {}

    async def _worker(chunk: Chunk) -> ChunkOutcome:
        async def _attempt() -> ChunkOutcome:
            attempts[chunk.index] = attempts.get(chunk.index, 0) + 1
            return await pipeline.run(chunk)

        return await with_retry(
            _attempt,
            settings.max_retries,
            settings.initial_delay,
            label=f"Chunk {chunk.number}",
            sleep=sleep,
        )

    def _on_complete(outcome: ChunkOutcome) -> None:
        tries = attempts.get(outcome.index, 0)
        context.record_outcome(outcome, attempts=tries)
        if debug_writer is not None:
            debug_writer.write_chunk(outcome)
        if not outcome.ok:
            context.degradations.append(chunk_failure_event(outcome, attempts=tries))

    outcomes = await run_bounded(
        chunks,
        settings.concurrency_limit,
        _worker,
        on_complete=_on_complete,
    )
    context.mark_checkpoint("chunks_complete")

    output = assemble(outcomes)
    context.mark_checkpoint("end")

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    if failed:
        logger.warning(f"{failed} of {len(outcomes)} chunks failed; error placeholders inserted")

    if debug_writer is not None:
        debug_writer.write_output(output)
        debug_writer.write_metadata(build_run_metadata(context, runner, settings))

    logger.info("=== Translation complete ===")
    return TranslationRun(
        output=output,
        outcomes=outcomes,
        context=context,
        usage=runner.usage,
        models=sorted(runner.models),
    )
