"""Translation run context.

A small, serializable record of one translation run: identity, timing
checkpoints, per-chunk results and errors. It feeds the debug metadata
record and is returned to callers of ``translate_text``.

It stores only stable primitives; the translated texts themselves live in
the chunk outcomes and the debug artifact files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from jatranslate.pipeline.chunk_pipeline import ChunkOutcome


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def chunk_key(index: int) -> str:
    return f"chunk_{index + 1:03d}"


@dataclass
class TranslationRunContext:
    """Serializable state for one run of the translation pipeline."""

    run_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: str = field(default_factory=_utc_now_iso)
    mode: str = "refine"

    input_chars: int = 0
    chunk_count: int = 0

    success: bool = True
    errors: List[str] = field(default_factory=list)

    checkpoints: Dict[str, str] = field(default_factory=dict)
    chunk_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    degradations: List[Dict[str, Any]] = field(default_factory=list)

    def mark_checkpoint(self, name: str) -> None:
        if not name.strip():
            return
        self.checkpoints[name] = _utc_now_iso()

    def record_outcome(self, outcome: ChunkOutcome, attempts: Optional[int] = None) -> None:
        result = outcome.to_dict()
        if attempts is not None:
            result["attempts"] = attempts
        self.chunk_results[chunk_key(outcome.index)] = result
        if not outcome.ok:
            self.success = False
            self.errors.append(f"Chunk {outcome.index + 1}: {outcome.error}")

    @property
    def failed_chunks(self) -> int:
        return sum(1 for result in self.chunk_results.values() if result.get("success") is False)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "schema_version": "1.0",
            "run_id": self.run_id,
            "created_at": self.created_at,
            "mode": self.mode,
            "input_chars": self.input_chars,
            "chunk_count": self.chunk_count,
            "success": self.success,
            "errors": list(self.errors),
            "checkpoints": dict(self.checkpoints),
            "chunk_results": dict(self.chunk_results),
            "degradations": list(self.degradations),
        }
