"""Single LLM-backed pipeline stage.

A stage is a prompt template plus one call to the generation capability.
``StageRunner`` renders the template, makes the call and returns the trimmed
text. Errors from the generation capability propagate unchanged; retry
policy belongs to the chunk-level retry wrapper.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Set

from loguru import logger

from jatranslate.llm.claude_client import GenerationCapability, TokenUsage
from jatranslate.prompts.translation import PromptTemplate, render_prompt
from jatranslate.tracing import get_tracer, set_span_attributes, stage_span


class StageName(str, Enum):
    DRAFT = "draft"
    CRITIQUE = "critique"
    REFINE = "refine"
    TRANSLATE = "translate"


@dataclass(frozen=True)
class StageResult:
    stage: StageName
    text: str
    model: str = ""


class StageRunner:
    """Runs stages against one shared generation capability.

    Usage and model ids from every response are accumulated for the run
    metadata record. All callers share one event loop, so the counters need
    no locking.
    """

    def __init__(self, generator: GenerationCapability):
        self.generator = generator
        self.usage = TokenUsage()
        self.models: Set[str] = set()
        self._tracer = get_tracer("jatranslate.pipeline.stages")

    async def run(
        self,
        stage: StageName,
        template: PromptTemplate,
        variables: Mapping[str, Any],
        chunk_index: Optional[int] = None,
    ) -> StageResult:
        """Render ``template`` with ``variables`` and call the generator once.

        Raises:
            PromptTemplateError: When a required variable is missing.
            Exception: Whatever the generation capability raises.
        """
        prompt = render_prompt(template, variables)

        with stage_span(self._tracer, stage.value, chunk_index, len(prompt.user)) as span:
            result = await self.generator.generate(prompt.system, prompt.user)
            set_span_attributes(
                span,
                {"jatranslate.model": result.model, "jatranslate.output_chars": len(result.text)},
            )

        self.usage.add(dict(result.usage or {}))
        if result.model:
            self.models.add(result.model)

        text = (result.text or "").strip()
        logger.debug(f"Stage {stage.value} (chunk {chunk_index}) returned {len(text)} chars")
        return StageResult(stage=stage, text=text, model=result.model)
