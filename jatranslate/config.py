"""
Centralized Configuration
=========================
Centralized configuration values and constants for the Japanese translation
pipeline.

This module provides:
- Timeout configuration for LLM calls
- Model, chunking, concurrency and retry defaults
- Environment variable overrides for every value

Values are read once at import time. Command-line flags override them per run.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class TimeoutConfig:
    """Centralized timeout configuration in seconds."""

    # LLM API timeouts
    LLM_API: int = _env_int("JATRANSLATE_LLM_TIMEOUT", 600)
    LLM_CONNECT: int = 30


@dataclass(frozen=True)
class ModelConfig:
    """Model selection for every stage of the pipeline."""

    # One of 'opus', 'sonnet', 'haiku'
    TIER: str = os.getenv("JATRANSLATE_MODEL", "sonnet").strip().lower()

    # Deterministic output by default
    TEMPERATURE: float = _env_float("JATRANSLATE_TEMPERATURE", 0.0)
    MAX_TOKENS: int = _env_int("JATRANSLATE_MAX_TOKENS", 16384)


@dataclass(frozen=True)
class ChunkingConfig:
    """Input splitting configuration (characters)."""

    CHUNK_SIZE: int = _env_int("JATRANSLATE_CHUNK_SIZE", 1000)

    # 0 avoids duplicated phrasing between translated chunks
    CHUNK_OVERLAP: int = _env_int("JATRANSLATE_CHUNK_OVERLAP", 0)


@dataclass(frozen=True)
class ConcurrencyConfig:
    """Bounds simultaneous load on the LLM API."""

    CONCURRENCY_LIMIT: int = _env_int("JATRANSLATE_CONCURRENCY", 3)


@dataclass(frozen=True)
class RetryConfig:
    """Per-chunk retry policy.

    A chunk is attempted at most MAX_RETRIES + 1 times. The wait before retry
    n is INITIAL_DELAY * 2 ** (n - 1) seconds.
    """

    MAX_RETRIES: int = _env_int("JATRANSLATE_MAX_RETRIES", 3)
    INITIAL_DELAY: float = _env_float("JATRANSLATE_INITIAL_DELAY", 1.0)


@dataclass(frozen=True)
class DebugConfig:
    """Debug artifact output."""

    # Root directory for per-run debug folders; unset disables debug output
    DEBUG_DIR: Optional[str] = os.getenv("JATRANSLATE_DEBUG_DIR") or None


@dataclass(frozen=True)
class TracingConfig:
    """Tracing configuration."""

    SERVICE_NAME: str = "jatranslate"
    OTLP_ENDPOINT: str = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
    ENABLED: bool = os.getenv("ENABLE_TRACING", "false").lower() == "true"


# Global singleton instances
TIMEOUTS = TimeoutConfig()
MODEL = ModelConfig()
CHUNKING = ChunkingConfig()
CONCURRENCY = ConcurrencyConfig()
RETRY = RetryConfig()
DEBUG = DebugConfig()
TRACING = TracingConfig()


def get_timeout(operation: str) -> int:
    """Get timeout for a specific operation type.

    Args:
        operation: One of 'llm', 'llm_connect'

    Returns:
        Timeout in seconds
    """
    mapping = {
        "llm": TIMEOUTS.LLM_API,
        "llm_connect": TIMEOUTS.LLM_CONNECT,
    }
    return mapping.get(operation, TIMEOUTS.LLM_API)
