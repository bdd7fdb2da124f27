from __future__ import annotations

import json

import pytest

from jatranslate.pipeline.assembler import ERROR_PLACEHOLDER
from jatranslate.pipeline.debug import DebugArtifactWriter
from jatranslate.pipeline.runner import InputError, TranslationSettings, translate_text
from jatranslate.utils.schema_validation import is_valid_run_metadata


THREE_PARAGRAPHS = "First paragraph.\n\nSecond paragraph.\n\nThird paragraph."


def settings(**overrides) -> TranslationSettings:
    values = {"chunk_size": 20, "max_retries": 2, "initial_delay": 1.0}
    values.update(overrides)
    return TranslationSettings(**values)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approved_single_chunk_returns_exact_draft(make_generator, recording_sleep) -> None:
    def responder(stage, user):
        return {"draft": "こんにちは。これはテストです。", "critique": "No issues"}[stage]

    generator = make_generator(responder=responder)

    run = await translate_text(
        "Hello. This is a test.", generator, TranslationSettings(), sleep=recording_sleep
    )

    assert run.output == "こんにちは。これはテストです。"
    assert generator.stages_called() == ["draft", "critique"]
    assert len(run.outcomes) == 1
    assert run.failed_chunks == 0
    assert run.context.success is True
    assert run.usage.requests == 2
    assert run.models == ["fake-model"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_chunk_becomes_placeholder(make_generator, recording_sleep) -> None:
    def responder(stage, user):
        if "Second" in user:
            raise ConnectionError("connection reset")
        if stage == "critique":
            return "No issues"
        return f"訳:{user}"

    generator = make_generator(responder=responder)

    run = await translate_text(THREE_PARAGRAPHS, generator, settings(), sleep=recording_sleep)

    assert run.output == f"訳:First paragraph.\n\n{ERROR_PLACEHOLDER}\n\n訳:Third paragraph."
    assert run.failed_chunks == 1
    assert run.context.success is False
    assert run.context.errors == ["Chunk 2: ConnectionError: connection reset"]
    # 1 attempt + 2 retries for the failing chunk, each stopping at draft.
    assert sum(1 for _stage, user in generator.calls if "Second" in user) == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert run.context.chunk_results["chunk_001"]["attempts"] == 1
    assert run.context.chunk_results["chunk_002"]["attempts"] == 3
    assert run.context.chunk_results["chunk_003"]["attempts"] == 1

    assert len(run.context.degradations) == 1
    event = run.context.degradations[0]
    assert event["stage"] == "chunk_002"
    assert event["reason_code"] == "chunk_failed"
    assert event["details"] == {"index": 1, "attempts": 3}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transient_failure_is_retried(make_generator, recording_sleep) -> None:
    failures = {"left": 1}

    def responder(stage, user):
        if stage == "critique" and failures["left"]:
            failures["left"] -= 1
            raise TimeoutError("read timeout")
        if stage == "critique":
            return "問題なし"
        return "訳"

    generator = make_generator(responder=responder)

    run = await translate_text("Hello.", generator, settings(initial_delay=0.25), sleep=recording_sleep)

    assert run.output == "訳"
    assert run.failed_chunks == 0
    assert recording_sleep.delays == [0.25]
    # The retry restarts the chunk from the draft stage.
    assert generator.stages_called() == ["draft", "critique", "draft", "critique"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_multiple_chunks_assemble_in_order(make_generator) -> None:
    generator = make_generator(delay=0.001)

    run = await translate_text(THREE_PARAGRAPHS, generator, settings(concurrency_limit=3))

    assert run.output == "訳:First paragraph.\n\n訳:Second paragraph.\n\n訳:Third paragraph."
    assert run.context.chunk_count == 3
    assert sorted(run.context.chunk_results) == ["chunk_001", "chunk_002", "chunk_003"]
    assert set(run.context.checkpoints) == {"start", "chunked", "chunks_complete", "end"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_whitespace_only_chunk_leaves_no_gap(make_generator) -> None:
    generator = make_generator()

    run = await translate_text("Hello.\n\n\n\n\n\nWorld.", generator, TranslationSettings(chunk_size=8))

    assert [outcome.ok for outcome in run.outcomes] == [True, True, True]
    assert run.outcomes[1].final == ""
    assert run.output == "訳:Hello.\n\n訳:World."
    assert len(generator.calls) == 4


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrency_limit_bounds_generation_calls(make_generator) -> None:
    text = "\n\n".join(f"Paragraph number {i}." for i in range(8))
    generator = make_generator(delay=0.005)

    run = await translate_text(text, generator, settings(chunk_size=25, concurrency_limit=2))

    assert len(run.outcomes) == 8
    assert generator.max_in_flight <= 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_mode_makes_one_call_per_chunk(make_generator) -> None:
    generator = make_generator()

    run = await translate_text(THREE_PARAGRAPHS, generator, settings(mode="single"))

    assert generator.stages_called() == ["translate"] * 3
    assert run.output.count("訳:") == 3


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\n\t"])
async def test_blank_input_raises(make_generator, text: str) -> None:
    generator = make_generator()

    with pytest.raises(InputError):
        await translate_text(text, generator, settings())
    assert generator.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_settings_raise(make_generator) -> None:
    with pytest.raises(ValueError, match="mode"):
        await translate_text("Hi", make_generator(), TranslationSettings(mode="fast"))


@pytest.mark.unit
@pytest.mark.asyncio
async def test_debug_artifacts_written(make_generator, recording_sleep, tmp_path) -> None:
    def responder(stage, user):
        if "Second" in user:
            raise ConnectionError("down")
        if stage == "critique":
            return "Use polite form." if "Third" in user else "No issues"
        if stage == "refine":
            return "改訂"
        return "下書き"

    writer = DebugArtifactWriter(tmp_path, run_name="run1")

    run = await translate_text(
        THREE_PARAGRAPHS,
        make_generator(responder=responder),
        settings(),
        debug_writer=writer,
        sleep=recording_sleep,
    )

    run_dir = tmp_path / "run1"
    names = sorted(p.name for p in run_dir.iterdir())
    assert names == [
        "01_input_text.txt",
        "02_1_system_prompt_draft.txt",
        "02_2_system_prompt_critique.txt",
        "02_3_system_prompt_refine.txt",
        "03_chunk_001_1_draft.txt",
        "03_chunk_001_2_critique.txt",
        "03_chunk_001_3_final.txt",
        "03_chunk_002_error.txt",
        "03_chunk_003_1_draft.txt",
        "03_chunk_003_2_critique.txt",
        "03_chunk_003_3_final.txt",
        "04_output_text.txt",
        "05_meta.json",
    ]
    assert (run_dir / "01_input_text.txt").read_text(encoding="utf-8") == THREE_PARAGRAPHS
    assert (run_dir / "03_chunk_003_3_final.txt").read_text(encoding="utf-8") == "改訂"
    assert (run_dir / "04_output_text.txt").read_text(encoding="utf-8") == run.output

    meta = json.loads((run_dir / "05_meta.json").read_text(encoding="utf-8"))
    assert is_valid_run_metadata(meta)
    assert meta["models"] == ["fake-model"]
    assert meta["run"]["run_id"] == run.context.run_id
    assert meta["run"]["success"] is False
    assert meta["degradation_summary"]["total"] == 1
    assert meta["settings"]["chunk_size"] == 20


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unwritable_debug_root_does_not_stop_translation(make_generator, tmp_path) -> None:
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x", encoding="utf-8")
    writer = DebugArtifactWriter(not_a_dir)

    run = await translate_text("Hello.", make_generator(), settings(), debug_writer=writer)

    assert run.output == "訳:Hello."
    assert writer.active is False


@pytest.mark.unit
def test_settings_from_env_ignores_none_overrides() -> None:
    s = TranslationSettings.from_env(chunk_size=None, concurrency_limit=5, mode="single")

    assert s.chunk_size == 1000
    assert s.concurrency_limit == 5
    assert s.mode == "single"
    assert s.max_retries == 3
    assert s.initial_delay == 1.0


@pytest.mark.unit
@pytest.mark.parametrize(
    "overrides,match",
    [
        ({"chunk_size": 0}, "chunk_size"),
        ({"chunk_size": 10, "chunk_overlap": 10}, "chunk_overlap"),
        ({"concurrency_limit": 0}, "concurrency_limit"),
        ({"max_retries": -1}, "max_retries"),
        ({"initial_delay": -1.0}, "initial_delay"),
        ({"mode": "fast"}, "mode"),
    ],
)
def test_settings_validate(overrides, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        TranslationSettings(**overrides).validate()
