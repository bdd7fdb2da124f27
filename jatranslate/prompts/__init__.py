"""jatranslate.prompts

Centralized prompts for the translation pipeline stages.
"""

from .translation import (
    CRITIQUE_PROMPT,
    CRITIQUE_SYSTEM_PROMPT,
    CRITIQUE_USER_TEMPLATE,
    DRAFT_PROMPT,
    DRAFT_SYSTEM_PROMPT,
    DRAFT_USER_TEMPLATE,
    NO_CHANGES_NEEDED,
    REFINE_PROMPT,
    REFINE_SYSTEM_PROMPT,
    REFINE_USER_TEMPLATE,
    SINGLE_PASS_PROMPT,
    SINGLE_PASS_SYSTEM_PROMPT,
    SINGLE_PASS_USER_TEMPLATE,
    PromptTemplate,
    PromptTemplateError,
    RenderedPrompt,
    render_prompt,
)

__all__ = [
    "CRITIQUE_PROMPT",
    "CRITIQUE_SYSTEM_PROMPT",
    "CRITIQUE_USER_TEMPLATE",
    "DRAFT_PROMPT",
    "DRAFT_SYSTEM_PROMPT",
    "DRAFT_USER_TEMPLATE",
    "NO_CHANGES_NEEDED",
    "REFINE_PROMPT",
    "REFINE_SYSTEM_PROMPT",
    "REFINE_USER_TEMPLATE",
    "SINGLE_PASS_PROMPT",
    "SINGLE_PASS_SYSTEM_PROMPT",
    "SINGLE_PASS_USER_TEMPLATE",
    "PromptTemplate",
    "PromptTemplateError",
    "RenderedPrompt",
    "render_prompt",
]
