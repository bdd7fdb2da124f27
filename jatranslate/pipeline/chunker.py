"""Recursive separator-based text chunking.

Long inputs are split into ordered chunks before translation. Splitting
prefers semantic boundaries: paragraph breaks first, then line breaks, then
sentence-terminal punctuation (Japanese and ASCII), then spaces, and finally
single characters.

Separators stay attached to the end of the piece they terminate, so joining
``Chunk.body`` for every chunk in order gives back the exact input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple


DEFAULT_SEPARATORS: Tuple[str, ...] = (
    "\n\n",
    "\n",
    "。",
    ".",
    "！",
    "!",
    "？",
    "?",
    " ",
    "",
)


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of the input.

    ``overlap`` is the number of leading characters repeated from the end of
    the previous chunk (always 0 for the first chunk).
    """

    index: int
    text: str
    overlap: int = 0

    @property
    def body(self) -> str:
        return self.text[self.overlap:]

    @property
    def number(self) -> int:
        """1-based position, used in logs and debug file names."""
        return self.index + 1


def split_text(
    text: str,
    max_chunk_size: int,
    overlap: int = 0,
    separators: Sequence[str] = DEFAULT_SEPARATORS,
) -> List[Chunk]:
    """Split ``text`` into ordered chunks of at most ``max_chunk_size`` characters.

    Args:
        text: Input text. Blank input is rejected by the caller; an empty
            string yields no chunks.
        max_chunk_size: Upper bound on ``len(chunk.text)``.
        overlap: Characters carried over from the previous chunk. Fresh
            content per chunk is capped at ``max_chunk_size - overlap``.
        separators: Ordered coarsest to finest. ``""`` means character-level.

    Returns:
        Chunks indexed from 0 in input order.

    Raises:
        ValueError: On a non-positive size or an overlap that leaves no room
            for fresh content.
    """
    if max_chunk_size < 1:
        raise ValueError(f"max_chunk_size must be >= 1, got {max_chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be >= 0, got {overlap}")
    if overlap >= max_chunk_size:
        raise ValueError(
            f"overlap ({overlap}) must be smaller than max_chunk_size ({max_chunk_size})"
        )
    if not text:
        return []

    budget = max_chunk_size - overlap
    pieces = _split_pieces(text, tuple(separators), budget)
    bodies = _pack(pieces, budget)

    chunks: List[Chunk] = []
    previous = ""
    for index, body in enumerate(bodies):
        carried = previous[-overlap:] if overlap and previous else ""
        chunk = Chunk(index=index, text=carried + body, overlap=len(carried))
        chunks.append(chunk)
        previous = chunk.text
    return chunks


def _split_pieces(text: str, separators: Tuple[str, ...], limit: int) -> List[str]:
    if len(text) <= limit:
        return [text]

    for position, separator in enumerate(separators):
        if separator == "":
            return _split_fixed(text, limit)
        if separator not in text:
            continue

        finer = separators[position + 1:]
        out: List[str] = []
        for piece in _split_keeping_separator(text, separator):
            if len(piece) <= limit:
                out.append(piece)
            else:
                out.extend(_split_pieces(piece, finer, limit))
        return out

    return _split_fixed(text, limit)


def _split_keeping_separator(text: str, separator: str) -> List[str]:
    parts = text.split(separator)
    pieces = [part + separator for part in parts[:-1]]
    if parts[-1]:
        pieces.append(parts[-1])
    return pieces


def _split_fixed(text: str, limit: int) -> List[str]:
    return [text[start:start + limit] for start in range(0, len(text), limit)]


def _pack(pieces: Sequence[str], limit: int) -> List[str]:
    """Greedily merge adjacent pieces while they fit in ``limit``."""
    bodies: List[str] = []
    current = ""
    for piece in pieces:
        if current and len(current) + len(piece) > limit:
            bodies.append(current)
            current = piece
        else:
            current += piece
    if current:
        bodies.append(current)
    return bodies
