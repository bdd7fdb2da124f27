"""Best-effort debug artifacts for a translation run.

Each run gets its own folder under the debug root. File names carry a
numeric prefix so a directory listing sorts in pipeline order::

    01_input_text.txt
    02_1_system_prompt_draft.txt
    02_2_system_prompt_critique.txt
    02_3_system_prompt_refine.txt
    03_chunk_001_1_draft.txt
    03_chunk_001_2_critique.txt
    03_chunk_001_3_final.txt
    03_chunk_002_error.txt
    04_output_text.txt
    05_meta.json

Filesystem problems are logged as warnings and never interrupt translation.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

from loguru import logger

from jatranslate.pipeline.chunk_pipeline import ChunkOutcome
from jatranslate.prompts.translation import PromptTemplate
from jatranslate.utils.schema_validation import validate_run_metadata
from jatranslate.utils.validation import sanitize_filename, validate_debug_root


class DebugArtifactWriter:
    """Writes the per-run debug file set."""

    def __init__(self, root: Union[str, Path], run_name: Optional[str] = None):
        self.root = Path(root).expanduser()
        self.run_name = sanitize_filename(run_name) if run_name else None
        self.run_dir: Optional[Path] = None

    @property
    def active(self) -> bool:
        return self.run_dir is not None

    def start(self, run_id: str) -> Optional[Path]:
        """Create the run folder. Returns None (and disables writing) on failure."""
        name = self.run_name or f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{run_id[:8]}"
        try:
            run_dir = validate_debug_root(self.root) / name
            run_dir.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as e:
            logger.warning(f"Debug output disabled; could not create folder under {self.root}: {e}")
            self.run_dir = None
            return None

        self.run_dir = run_dir
        logger.info(f"Debug directory: {run_dir}")
        return run_dir

    def _write(self, filename: str, content: str) -> Optional[Path]:
        if self.run_dir is None:
            return None
        path = self.run_dir / filename
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to write debug file {path}: {e}")
            return None
        return path

    def write_input(self, text: str) -> Optional[Path]:
        return self._write("01_input_text.txt", text)

    def write_system_prompts(self, templates: Sequence[PromptTemplate]) -> None:
        for position, template in enumerate(templates, start=1):
            self._write(f"02_{position}_system_prompt_{template.name}.txt", template.system)

    def write_chunk(self, outcome: ChunkOutcome) -> None:
        prefix = f"03_chunk_{outcome.index + 1:03d}"
        if not outcome.ok:
            self._write(f"{prefix}_error.txt", outcome.error or "")
            return
        self._write(f"{prefix}_1_draft.txt", outcome.draft)
        if outcome.critique:
            self._write(f"{prefix}_2_critique.txt", outcome.critique)
        self._write(f"{prefix}_3_final.txt", outcome.final)

    def write_output(self, text: str) -> Optional[Path]:
        return self._write("04_output_text.txt", text)

    def write_metadata(self, meta: Dict[str, Any]) -> Optional[Path]:
        try:
            validate_run_metadata(meta)
        except ValueError as e:
            logger.warning(f"Run metadata does not match schema: {e}")
        return self._write(
            "05_meta.json",
            json.dumps(meta, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
        )
