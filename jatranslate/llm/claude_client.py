"""
Claude API Client for the Translation Pipeline
==============================================
Provides the text generation capability used by every pipeline stage:
- Model tiers (Opus 4.5, Sonnet 4.5, Haiku 4.5) with a small registry
- One async call per stage: system prompt + user content in, text out
- Token usage accounting and cost estimation for the usage report

Retries are deliberately not performed here. The SDK's own retry loop is
disabled (max_retries=0); chunk-level retry with backoff is applied by
jatranslate.pipeline.retry.

Model Selection Guide:
- Opus 4.5: Hardest source material, literary or dense technical prose
- Sonnet 4.5: Default for translation, critique and refinement
- Haiku 4.5: High-volume, low-latency drafts
"""

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, Union

import anthropic
import httpx
from loguru import logger

from jatranslate.config import MODEL, get_timeout


def load_env_file_lenient(env_path: Optional[Path] = None) -> None:
    """Load .env without raising or printing parse warnings.

    Looks in the current directory, then the repository root. Variables that
    are already set in the environment are never overridden.
    """
    candidates = [env_path] if env_path else [
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[2] / ".env",
    ]

    for path in candidates:
        if path is None or not path.exists():
            continue

        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError):
            continue

        for raw_line in lines:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if not key:
                continue
            if not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", key):
                continue
            os.environ.setdefault(key, value)


class GenerationError(RuntimeError):
    """Raised when the LLM API returns something the pipeline cannot use."""


class MalformedResponseError(GenerationError):
    """Raised when a response carries no text content."""


class ModelTier(Enum):
    """Model tiers."""
    OPUS = "opus"       # Premium: maximum quality
    SONNET = "sonnet"   # Balanced: default for all stages
    HAIKU = "haiku"     # Fast: high-volume drafts


@dataclass
class ModelInfo:
    """Information about a Claude model."""
    id: str
    alias: str
    tier: ModelTier
    description: str
    input_price_per_mtok: float
    output_price_per_mtok: float
    context_window: int
    max_output: int
    latency: str


MODELS = {
    ModelTier.OPUS: ModelInfo(
        id="claude-opus-4-5-20251101",
        alias="claude-opus-4-5",
        tier=ModelTier.OPUS,
        description="Premium model for the hardest source material",
        input_price_per_mtok=5.0,
        output_price_per_mtok=25.0,
        context_window=200_000,
        max_output=64_000,
        latency="Moderate",
    ),
    ModelTier.SONNET: ModelInfo(
        id="claude-sonnet-4-5-20250929",
        alias="claude-sonnet-4-5",
        tier=ModelTier.SONNET,
        description="Balanced model for translation and review",
        input_price_per_mtok=3.0,
        output_price_per_mtok=15.0,
        context_window=200_000,
        max_output=64_000,
        latency="Fast",
    ),
    ModelTier.HAIKU: ModelInfo(
        id="claude-haiku-4-5-20251001",
        alias="claude-haiku-4-5",
        tier=ModelTier.HAIKU,
        description="Fastest model for high-volume drafts",
        input_price_per_mtok=1.0,
        output_price_per_mtok=5.0,
        context_window=200_000,
        max_output=64_000,
        latency="Fastest",
    ),
}


def resolve_tier(model: Union[ModelTier, str, None], default: ModelTier = ModelTier.SONNET) -> ModelTier:
    """Map a tier enum or name ('opus', 'sonnet', 'haiku') to a ModelTier."""
    if model is None:
        return default
    if isinstance(model, ModelTier):
        return model
    tier_map = {"opus": ModelTier.OPUS, "sonnet": ModelTier.SONNET, "haiku": ModelTier.HAIKU}
    return tier_map.get(str(model).strip().lower(), default)


@dataclass
class TokenUsage:
    """Track token usage across requests."""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    requests: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add(self, usage: dict):
        """Add usage from an API response."""
        self.input_tokens += usage.get("input_tokens") or 0
        self.output_tokens += usage.get("output_tokens") or 0
        self.cache_creation_tokens += usage.get("cache_creation_input_tokens") or 0
        self.cache_read_tokens += usage.get("cache_read_input_tokens") or 0
        self.requests += 1

    def estimate_cost(self, model: ModelTier) -> float:
        """Estimate cost in USD based on model pricing."""
        info = MODELS[model]
        input_cost = (self.input_tokens / 1_000_000) * info.input_price_per_mtok
        output_cost = (self.output_tokens / 1_000_000) * info.output_price_per_mtok
        return input_cost + output_cost

    def to_dict(self) -> dict:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "cache_creation_tokens": self.cache_creation_tokens,
            "cache_read_tokens": self.cache_read_tokens,
            "requests": self.requests,
        }


@dataclass(frozen=True)
class GenerationResult:
    """Text returned by one generation call, with model id and usage stats."""
    text: str
    model: str
    usage: dict = field(default_factory=dict)


class GenerationCapability(Protocol):
    """Anything that turns a system prompt and user content into text."""

    async def generate(self, system: str, user: str) -> GenerationResult:
        ...


class ClaudeClient:
    """
    Claude API client used as the pipeline's generation capability.

    One instance is shared by all concurrently running chunk pipelines; the
    underlying AsyncAnthropic client pools connections. Failures (network,
    rate limit, server errors, malformed responses) are raised to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: Union[ModelTier, str, None] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """
        Initialize Claude client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            default_model: Model tier (OPUS, SONNET, HAIKU) or its name
            temperature: Sampling temperature (defaults to config, 0.0)
            max_tokens: Maximum tokens per response (defaults to config)
        """
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not found in environment")

        timeout_config = httpx.Timeout(float(get_timeout("llm")), connect=float(get_timeout("llm_connect")))

        self.async_client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            timeout=timeout_config,
            max_retries=0,
        )

        self.default_model = resolve_tier(default_model or MODEL.TIER)
        self.temperature = MODEL.TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or MODEL.MAX_TOKENS

        logger.info(f"Claude client initialized with model: {self.model_id}")

    @property
    def model_id(self) -> str:
        return MODELS[self.default_model].id

    async def generate(self, system: str, user: str) -> GenerationResult:
        """
        Send one system/user message pair and return the response text.

        Args:
            system: System prompt
            user: User message content

        Returns:
            GenerationResult with the text, the model id reported by the API,
            and the usage block of the response

        Raises:
            anthropic.APIError: Network, rate limit or server failures
            MalformedResponseError: When the response has no text block
        """
        kwargs = {
            "model": self.model_id,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": user}],
            "temperature": self.temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self.async_client.messages.create(**kwargs)

        usage = response.usage.model_dump() if getattr(response, "usage", None) is not None else {}
        logger.debug(f"Generation response [{self.model_id}]: {usage}")

        text = _first_text_block(response)
        if text is None:
            raise MalformedResponseError(
                f"Response from {self.model_id} contained no text content "
                f"(stop_reason={getattr(response, 'stop_reason', None)})"
            )

        return GenerationResult(
            text=text,
            model=getattr(response, "model", None) or self.model_id,
            usage=usage,
        )

    async def close(self) -> None:
        await self.async_client.close()


def _first_text_block(response) -> Optional[str]:
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text" and isinstance(getattr(block, "text", None), str):
            return block.text
    return None


def get_claude_client(
    model: Union[ModelTier, str, None] = None,
    temperature: Optional[float] = None,
) -> ClaudeClient:
    """
    Get a configured Claude client.

    Args:
        model: Model tier (OPUS, SONNET, HAIKU) or its name
        temperature: Sampling temperature override

    Returns:
        Configured ClaudeClient instance
    """
    return ClaudeClient(default_model=model, temperature=temperature)
