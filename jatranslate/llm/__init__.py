"""
LLM Client Module
=================
Provides the generation capability (Claude) used by the translation stages.
"""

from .claude_client import (
    ClaudeClient,
    GenerationCapability,
    GenerationError,
    GenerationResult,
    MalformedResponseError,
    ModelTier,
    TokenUsage,
    get_claude_client,
    load_env_file_lenient,
)

__all__ = [
    "ClaudeClient",
    "GenerationCapability",
    "GenerationError",
    "GenerationResult",
    "MalformedResponseError",
    "ModelTier",
    "TokenUsage",
    "get_claude_client",
    "load_env_file_lenient",
]
