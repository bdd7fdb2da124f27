"""Per-chunk Draft -> Critique -> Refine workflow.

State machine for one attempt at one chunk::

    START -> DRAFTED -> CRITIQUED -> REFINED        -> DONE
                                  \\-> SKIPPED_REFINE -/

Draft and Critique always run. Refine is skipped when the critique contains
an approval marker; the draft then becomes the final text. Each stage runs
at most once per attempt; a retry starts a fresh attempt from START.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from loguru import logger

from jatranslate.pipeline.chunker import Chunk
from jatranslate.pipeline.stages import StageName, StageRunner
from jatranslate.prompts.translation import (
    CRITIQUE_PROMPT,
    DRAFT_PROMPT,
    NO_CHANGES_NEEDED,
    REFINE_PROMPT,
    SINGLE_PASS_PROMPT,
)


# Known fragility: a substring heuristic against free-form model text. A
# critique such as "there are no issues except ..." is read as approval.
APPROVAL_MARKERS = ("no issues", "問題なし")


class PipelineState(str, Enum):
    START = "start"
    DRAFTED = "drafted"
    CRITIQUED = "critiqued"
    REFINED = "refined"
    SKIPPED_REFINE = "skipped_refine"
    DONE = "done"


@dataclass
class PipelineContext:
    """Working state for one chunk attempt; discarded when it finishes."""

    original_text: str
    state: PipelineState = PipelineState.START
    draft: Optional[str] = None
    critique: Optional[str] = None
    final: Optional[str] = None


@dataclass(frozen=True)
class ChunkOutcome:
    """Result slot for one chunk: either translated text or an error marker."""

    index: int
    draft: str = ""
    critique: str = ""
    final: str = ""
    error: Optional[str] = None
    refined: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, index: int, error: str) -> "ChunkOutcome":
        return cls(index=index, error=error)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"index": self.index, "success": self.ok}
        if self.ok:
            payload.update(
                {
                    "draft_chars": len(self.draft),
                    "critique_chars": len(self.critique),
                    "final_chars": len(self.final),
                    "refined": self.refined,
                }
            )
        else:
            payload["error"] = self.error
        return payload


def is_approved(critique: str, markers: Sequence[str] = APPROVAL_MARKERS) -> bool:
    """True when ``critique`` contains any approval marker (case-insensitive)."""
    folded = critique.casefold()
    return any(marker.casefold() in folded for marker in markers if marker)


def _snippet(text: str, limit: int = 40) -> str:
    return text.replace("\n", " ")[:limit]


class ChunkPipeline:
    """Draft, critique and (conditionally) refine one chunk."""

    def __init__(
        self,
        runner: StageRunner,
        refine_on_approval: bool = False,
        approval_markers: Sequence[str] = APPROVAL_MARKERS,
    ):
        self.runner = runner
        self.refine_on_approval = refine_on_approval
        self.approval_markers = tuple(approval_markers)

    async def run(self, chunk: Chunk) -> ChunkOutcome:
        text = chunk.text.strip()
        if not text:
            # Whitespace-only slice: nothing to translate.
            return ChunkOutcome(index=chunk.index)

        ctx = PipelineContext(original_text=text)

        draft = await self.runner.run(
            StageName.DRAFT, DRAFT_PROMPT, {"original_text": ctx.original_text}, chunk.index
        )
        ctx.draft = draft.text
        ctx.state = PipelineState.DRAFTED

        critique = await self.runner.run(
            StageName.CRITIQUE,
            CRITIQUE_PROMPT,
            {"original_text": ctx.original_text, "initial_translation": ctx.draft},
            chunk.index,
        )
        ctx.critique = critique.text
        ctx.state = PipelineState.CRITIQUED

        if is_approved(ctx.critique, self.approval_markers):
            logger.info(f"  [Chunk {chunk.number}] critique: no issues ({_snippet(ctx.critique)}...)")
            if self.refine_on_approval:
                refine = await self.runner.run(
                    StageName.REFINE,
                    REFINE_PROMPT,
                    {
                        "original_text": ctx.original_text,
                        "initial_translation": ctx.draft,
                        "critique": NO_CHANGES_NEEDED,
                    },
                    chunk.index,
                )
                ctx.final = refine.text
            else:
                ctx.final = ctx.draft
            ctx.state = PipelineState.SKIPPED_REFINE
        else:
            logger.info(f"  [Chunk {chunk.number}] critique: changes suggested ({_snippet(ctx.critique)}...)")
            refine = await self.runner.run(
                StageName.REFINE,
                REFINE_PROMPT,
                {
                    "original_text": ctx.original_text,
                    "initial_translation": ctx.draft,
                    "critique": ctx.critique,
                },
                chunk.index,
            )
            ctx.final = refine.text
            ctx.state = PipelineState.REFINED

        refined = ctx.state is PipelineState.REFINED
        ctx.state = PipelineState.DONE
        return ChunkOutcome(
            index=chunk.index,
            draft=ctx.draft,
            critique=ctx.critique,
            final=ctx.final,
            refined=refined,
        )


class SinglePassPipeline:
    """One translate call per chunk; no critique or refinement."""

    def __init__(self, runner: StageRunner):
        self.runner = runner

    async def run(self, chunk: Chunk) -> ChunkOutcome:
        text = chunk.text.strip()
        if not text:
            return ChunkOutcome(index=chunk.index)

        result = await self.runner.run(
            StageName.TRANSLATE, SINGLE_PASS_PROMPT, {"original_text": text}, chunk.index
        )
        return ChunkOutcome(index=chunk.index, draft=result.text, final=result.text)
