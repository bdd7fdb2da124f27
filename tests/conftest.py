"""Shared fixtures: a scripted, offline stand-in for the Claude client."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Tuple

import pytest

from jatranslate.llm.claude_client import GenerationResult
from jatranslate.prompts.translation import (
    CRITIQUE_SYSTEM_PROMPT,
    DRAFT_SYSTEM_PROMPT,
    REFINE_SYSTEM_PROMPT,
    SINGLE_PASS_SYSTEM_PROMPT,
)

STAGE_BY_SYSTEM = {
    DRAFT_SYSTEM_PROMPT: "draft",
    CRITIQUE_SYSTEM_PROMPT: "critique",
    REFINE_SYSTEM_PROMPT: "refine",
    SINGLE_PASS_SYSTEM_PROMPT: "translate",
}


def original_of(user: str) -> str:
    """Recover the original text from any stage's user message."""
    if user.startswith("Original Text: "):
        first = user[len("Original Text: "):]
        for marker in ("\n\nTranslation Draft: ", "\nInitial Translation: "):
            if marker in first:
                return first.split(marker, 1)[0]
        return first
    return user


def default_responder(stage: str, user: str) -> str:
    if stage in ("draft", "translate"):
        return f"訳:{original_of(user)}"
    if stage == "critique":
        return "No issues"
    if stage == "refine":
        return f"改:{original_of(user)}"
    raise AssertionError(f"unexpected stage {stage}")


class FakeGenerator:
    """Generation capability driven by a ``responder(stage, user)`` callable.

    The responder may raise to simulate API failures. Every call is
    recorded, and the peak number of concurrent calls is tracked.
    """

    def __init__(
        self,
        responder: Optional[Callable[[str, str], str]] = None,
        delay: float = 0.0,
        model: str = "fake-model",
    ):
        self.responder = responder or default_responder
        self.delay = delay
        self.model = model
        self.calls: List[Tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    def stages_called(self) -> List[str]:
        return [stage for stage, _user in self.calls]

    async def generate(self, system: str, user: str) -> GenerationResult:
        stage = STAGE_BY_SYSTEM.get(system, "unknown")
        self.calls.append((stage, user))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            text = self.responder(stage, user)
        finally:
            self.in_flight -= 1
        return GenerationResult(
            text=text,
            model=self.model,
            usage={"input_tokens": 10, "output_tokens": 5},
        )

    async def close(self) -> None:
        self.closed = True


def make_recording_sleep():
    """Async sleep replacement that records requested delays on ``.delays``."""
    delays: List[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def make_generator():
    return FakeGenerator


@pytest.fixture
def recording_sleep():
    return make_recording_sleep()
