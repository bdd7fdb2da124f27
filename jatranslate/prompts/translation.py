"""jatranslate.prompts.translation

Translation Prompts
===================

Prompts for the per-chunk translation pipeline:

1. Draft: translate the chunk into Japanese for text-to-speech use
2. Critique: review the draft against the original and list problems
3. Refine: produce the final translation from draft + critique

plus the one-shot prompt used by the single-pass mode.

Templates are plain ``str.format`` strings. ``render_prompt`` is a pure
function that substitutes variables and fails loudly when one is missing.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping


class PromptTemplateError(ValueError):
    """Raised when a template cannot be rendered with the given variables."""


@dataclass(frozen=True)
class PromptTemplate:
    """A fixed system/user message pair with named placeholders."""

    name: str
    system: str
    user: str

    @property
    def required_variables(self) -> FrozenSet[str]:
        return _placeholders(self.system) | _placeholders(self.user)


@dataclass(frozen=True)
class RenderedPrompt:
    name: str
    system: str
    user: str


def _placeholders(template: str) -> FrozenSet[str]:
    names = set()
    for _literal, field_name, _spec, _conversion in string.Formatter().parse(template):
        if field_name:
            names.add(field_name)
    return frozenset(names)


def render_prompt(template: PromptTemplate, variables: Mapping[str, Any]) -> RenderedPrompt:
    """Substitute ``variables`` into both messages of ``template``.

    Extra variables are ignored.

    Raises:
        PromptTemplateError: When a required variable is missing or None.
    """
    missing = sorted(
        name for name in template.required_variables
        if name not in variables or variables[name] is None
    )
    if missing:
        raise PromptTemplateError(
            f"Prompt '{template.name}' is missing required variables: {', '.join(missing)}"
        )

    values = {name: str(variables[name]) for name in template.required_variables}
    return RenderedPrompt(
        name=template.name,
        system=template.system.format(**values),
        user=template.user.format(**values),
    )


# Sent to the refine stage when the critique approved the draft.
NO_CHANGES_NEEDED = "No changes needed."


# =============================================================================
# Stage 1: Draft
# =============================================================================

DRAFT_SYSTEM_PROMPT = """You are a professional technical translator.
Translate the input text into Japanese strictly adhering to the following [Constraints].

[Constraints]
1. **Output Language**: Always output in Japanese.
2. **Keep English Terms**: Do not katakana-ize product names, codes, specific proper nouns, or technical terms (e.g., 'iPhone', 'Python', 'API') if the original English spelling is more natural for pronunciation or recognition. Keep them in English.
3. **Maintain Existing Japanese**: If parts of the input text are already in natural Japanese, keep them exactly as they are.
4. **TTS Optimization**: Translate for Text-To-Speech (TTS) purposes. Ensure the Japanese is audibly easy to understand with a natural rhythm. Break up sentences that are too long.
5. **No Superfluous Text**: Do not include explanations, notes, or conversational fillers. Output ONLY the translated text string."""

DRAFT_USER_TEMPLATE = "{original_text}"


# =============================================================================
# Stage 2: Critique
# =============================================================================

CRITIQUE_SYSTEM_PROMPT = """You are a translation quality assurance specialist.
Compare the "Original Text" and the "Translation Draft", and list improvement points based on the following criteria.

[Check Criteria]
1. **Technical Terms**: Are technical terms or library names unnecessarily katakana-ized? (Keep them in English if that is more natural).
2. **TTS Suitability**: Is the rhythm poor when heard via TTS, or are sentences too long causing unnatural pauses?
3. **Accuracy & Naturalness**: Are there mistranslations? Has existing Japanese content been altered unnaturally?

If there are no issues, output only "No issues"."""

CRITIQUE_USER_TEMPLATE = """Original Text: {original_text}

Translation Draft: {initial_translation}"""


# =============================================================================
# Stage 3: Refine
# =============================================================================

REFINE_SYSTEM_PROMPT = """You are a professional editor.
Create the **final translation** optimized for TTS based on the "Original Text", "Initial Translation", and "Critique".
If there are no critiques, output the initial translation as is.
Output ONLY the final translated text."""

REFINE_USER_TEMPLATE = """Original Text: {original_text}
Initial Translation: {initial_translation}
Critique: {critique}"""


# =============================================================================
# Single pass
# =============================================================================

SINGLE_PASS_SYSTEM_PROMPT = """You are a professional translator.
Translate the following text into natural, fluent Japanese.
Maintain the tone and nuance of the original text.
Output ONLY the translated Japanese text."""

SINGLE_PASS_USER_TEMPLATE = "{original_text}"


DRAFT_PROMPT = PromptTemplate("draft", DRAFT_SYSTEM_PROMPT, DRAFT_USER_TEMPLATE)
CRITIQUE_PROMPT = PromptTemplate("critique", CRITIQUE_SYSTEM_PROMPT, CRITIQUE_USER_TEMPLATE)
REFINE_PROMPT = PromptTemplate("refine", REFINE_SYSTEM_PROMPT, REFINE_USER_TEMPLATE)
SINGLE_PASS_PROMPT = PromptTemplate("translate", SINGLE_PASS_SYSTEM_PROMPT, SINGLE_PASS_USER_TEMPLATE)
