from __future__ import annotations

import pytest

from jatranslate.pipeline.chunker import Chunk, split_text


SAMPLE = (
    "The quick brown fox jumps over the lazy dog. It was not amused.\n\n"
    "これは日本語の文です。もう一つの文です！本当に？\n"
    "Line two of the second paragraph has no terminal punctuation\n\n"
    "Final paragraph with a verylongtokenwithoutanybreaksatallthatmustbesplitbycharacters."
)


@pytest.mark.unit
def test_short_text_is_a_single_chunk() -> None:
    chunks = split_text("Hello. This is a test.", 1000)
    assert chunks == [Chunk(index=0, text="Hello. This is a test.")]


@pytest.mark.unit
def test_empty_text_yields_no_chunks() -> None:
    assert split_text("", 10) == []


@pytest.mark.unit
@pytest.mark.parametrize("size,overlap", [(5, 0), (12, 0), (40, 0), (40, 10), (25, 24), (1, 0), (1000, 0)])
def test_bodies_reconstruct_input_and_respect_size(size: int, overlap: int) -> None:
    chunks = split_text(SAMPLE, size, overlap)

    assert "".join(chunk.body for chunk in chunks) == SAMPLE
    assert all(len(chunk.text) <= size for chunk in chunks)
    assert all(chunk.text for chunk in chunks)
    assert [chunk.index for chunk in chunks] == list(range(len(chunks)))


@pytest.mark.unit
def test_zero_overlap_chunks_concatenate_to_input() -> None:
    chunks = split_text(SAMPLE, 30)
    assert "".join(chunk.text for chunk in chunks) == SAMPLE
    assert all(chunk.overlap == 0 for chunk in chunks)


@pytest.mark.unit
def test_prefers_paragraph_breaks() -> None:
    chunks = split_text("aaa\n\nbbb", 5)
    assert [chunk.text for chunk in chunks] == ["aaa\n\n", "bbb"]


@pytest.mark.unit
def test_splits_on_japanese_sentence_terminals() -> None:
    chunks = split_text("これはペンです。あれは本です。", 10)
    assert [chunk.text for chunk in chunks] == ["これはペンです。", "あれは本です。"]


@pytest.mark.unit
def test_falls_back_to_fixed_character_windows() -> None:
    chunks = split_text("abcdefghij", 3)
    assert [chunk.text for chunk in chunks] == ["abc", "def", "ghi", "j"]


@pytest.mark.unit
def test_packs_small_pieces_greedily() -> None:
    chunks = split_text("a b c d e f", 4)
    assert [chunk.text for chunk in chunks] == ["a b ", "c d ", "e f"]


@pytest.mark.unit
def test_overlap_repeats_tail_of_previous_chunk() -> None:
    text = "one two three four five six seven"
    chunks = split_text(text, 10, overlap=3)

    assert chunks[0].overlap == 0
    for previous, chunk in zip(chunks, chunks[1:]):
        assert chunk.overlap == 3
        assert chunk.text.startswith(previous.text[-3:])
        assert len(chunk.text) <= 10
    assert "".join(chunk.body for chunk in chunks) == text


@pytest.mark.unit
def test_chunk_number_is_one_based() -> None:
    chunks = split_text("abcdef", 2)
    assert [chunk.number for chunk in chunks] == [1, 2, 3]


@pytest.mark.unit
@pytest.mark.parametrize(
    "size,overlap,match",
    [(0, 0, "max_chunk_size"), (-5, 0, "max_chunk_size"), (10, -1, "overlap"), (10, 10, "overlap"), (10, 11, "overlap")],
)
def test_invalid_sizes_raise(size: int, overlap: int, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        split_text("some text", size, overlap)
