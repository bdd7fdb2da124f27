"""Join per-chunk results into the final output text."""

from __future__ import annotations

from typing import Sequence

from jatranslate.pipeline.chunk_pipeline import ChunkOutcome

ERROR_PLACEHOLDER = "[Error]"


def assemble(outcomes: Sequence[ChunkOutcome], separator: str = "\n\n") -> str:
    """Join each outcome's final text in index order.

    Failed chunks are rendered as ``ERROR_PLACEHOLDER`` so the gap stays
    visible in the output. Successful chunks with no text (whitespace-only
    slices of the input) are left out rather than leaving an empty slot.
    """
    parts = []
    for outcome in sorted(outcomes, key=lambda outcome: outcome.index):
        if not outcome.ok:
            parts.append(ERROR_PLACEHOLDER)
        elif outcome.final:
            parts.append(outcome.final)
    return separator.join(parts)
