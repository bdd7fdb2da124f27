"""Graceful degradation events.

A translation run degrades rather than fails when an individual chunk
cannot be translated: the chunk's slot shows a placeholder and an event is
recorded here. Events are summarized into the run metadata record.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from jatranslate.pipeline.chunk_pipeline import ChunkOutcome
from jatranslate.utils.schema_validation import validate_degradation_event

CHUNK_FAILED = "chunk_failed"


def _utc_now_iso_z() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class DegradationEvent:
    """One place where a run produced less than a full translation."""

    stage: str
    reason_code: str
    message: str
    severity: str = "warning"
    recommended_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: str = field(default_factory=_utc_now_iso_z)

    def to_dict(self) -> Dict[str, Any]:
        """Schema-validated payload (raises ValueError when invalid)."""
        payload = {"schema_version": "1.0", **asdict(self)}
        validate_degradation_event(payload)
        return payload


def make_degradation_event(
    *,
    stage: str,
    reason_code: str,
    message: str,
    recommended_action: Optional[str] = None,
    severity: str = "warning",
    details: Optional[Dict[str, Any]] = None,
    created_at: Optional[str] = None,
) -> Dict[str, Any]:
    extra = {"created_at": created_at} if created_at else {}
    return DegradationEvent(
        stage=str(stage).strip(),
        reason_code=str(reason_code).strip(),
        message=str(message).strip(),
        severity=severity,
        recommended_action=recommended_action,
        details=details,
        **extra,
    ).to_dict()


def chunk_failure_event(outcome: ChunkOutcome, *, attempts: int) -> Dict[str, Any]:
    """Event for a chunk whose retries were exhausted."""
    number = outcome.index + 1
    return make_degradation_event(
        stage=f"chunk_{number:03d}",
        reason_code=CHUNK_FAILED,
        message=f"Chunk {number} could not be translated: {outcome.error}",
        recommended_action="Rerun the input; check API quota and connectivity if failures persist.",
        details={"index": outcome.index, "attempts": attempts},
    )


def summarize_degradations(events: Iterable[Any]) -> Dict[str, Any]:
    """Counts by stage and reason code; non-dict entries are ignored."""
    valid = [evt for evt in events if isinstance(evt, dict)]
    by_stage = Counter(str(evt.get("stage") or "").strip() or "unknown" for evt in valid)
    by_reason = Counter(str(evt.get("reason_code") or "").strip() or "unknown" for evt in valid)
    return {
        "total": len(valid),
        "by_stage": dict(sorted(by_stage.items())),
        "by_reason_code": dict(sorted(by_reason.items())),
    }
