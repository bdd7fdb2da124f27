"""Bounded-concurrency execution of chunk pipelines.

All chunks are scheduled as asyncio tasks in index order; a semaphore caps
how many are in flight at once. Each task writes exactly one slot of a
pre-sized results list, so completion order never affects output order and
no locking is needed.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence

from loguru import logger

from jatranslate.pipeline.chunk_pipeline import ChunkOutcome
from jatranslate.pipeline.chunker import Chunk
from jatranslate.pipeline.retry import is_retryable

Worker = Callable[[Chunk], Awaitable[ChunkOutcome]]
CompletionCallback = Callable[[ChunkOutcome], None]


async def run_bounded(
    chunks: Sequence[Chunk],
    concurrency_limit: int,
    worker: Worker,
    *,
    on_complete: Optional[CompletionCallback] = None,
) -> List[ChunkOutcome]:
    """Run ``worker`` over every chunk with at most ``concurrency_limit`` in flight.

    A worker exception is recorded as an error outcome at the chunk's index
    and the other chunks keep running. Errors that mark a programming defect
    (see ``retry.is_retryable``) cancel the remaining tasks and propagate.

    Returns:
        One outcome per chunk, positioned by ``chunk.index``.
    """
    if concurrency_limit < 1:
        raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")

    total = len(chunks)
    if sorted(chunk.index for chunk in chunks) != list(range(total)):
        raise ValueError("chunk indexes must be exactly 0..n-1")
    results: List[Optional[ChunkOutcome]] = [None] * total
    semaphore = asyncio.Semaphore(concurrency_limit)

    async def _run_one(chunk: Chunk) -> None:
        async with semaphore:
            logger.info(f"Processing chunk {chunk.number}/{total}...")
            try:
                outcome = await worker(chunk)
            except Exception as e:
                if not is_retryable(e):
                    raise
                logger.error(f"Chunk {chunk.number} failed: {type(e).__name__}: {e}")
                outcome = ChunkOutcome.failed(chunk.index, f"{type(e).__name__}: {e}")
            else:
                logger.info(f"  Chunk {chunk.number} done.")

        results[chunk.index] = outcome
        if on_complete is not None:
            try:
                on_complete(outcome)
            except Exception:
                logger.exception(f"Completion callback failed for chunk {chunk.number}")

    tasks = [asyncio.ensure_future(_run_one(chunk)) for chunk in chunks]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    missing = [i for i, outcome in enumerate(results) if outcome is None]
    if missing:
        raise RuntimeError(f"Chunk results missing for indexes: {missing}")
    return results  # type: ignore[return-value]
