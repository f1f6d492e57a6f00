"""Fixed-window text chunking and document identity for the RAG pipeline.

Files are split into character windows of ``chunk_size`` that overlap by
``overlap`` characters, so a term that straddles a window boundary is still
fully contained in at least one chunk.  Each window carries a lowercase copy
of its text for case-insensitive scoring.
"""
import hashlib
from dataclasses import dataclass
from typing import List

from .errors import InvalidChunkingError

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 200
DOCUMENT_ID_LENGTH = 8


@dataclass
class TextChunk:
    """A single window of source text."""

    content: str
    lowercase_content: str
    start: int
    end: int


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> List[TextChunk]:
    """Split *text* into overlapping windows.

    Windows start every ``chunk_size - overlap`` characters.  The last window
    is the first one that reaches the end of the text and may be shorter
    than ``chunk_size``.

    Args:
        text:       Full file text.
        chunk_size: Maximum characters per window.
        overlap:    Characters shared by adjacent windows.

    Returns:
        Windows in increasing ``start`` order; empty for empty text.

    Raises:
        InvalidChunkingError: If ``chunk_size`` is not positive or
            ``overlap`` is negative or not smaller than ``chunk_size``.
    """
    validate_chunking(chunk_size, overlap)

    chunks: List[TextChunk] = []
    step = chunk_size - overlap
    length = len(text)
    start = 0

    while start < length:
        end = min(start + chunk_size, length)
        content = text[start:end]
        chunks.append(TextChunk(
            content=content,
            lowercase_content=content.lower(),
            start=start,
            end=end,
        ))
        if end == length:
            break
        start += step

    return chunks


def validate_chunking(chunk_size: int, overlap: int) -> None:
    """Reject window settings that would not advance through the text."""
    if chunk_size <= 0:
        raise InvalidChunkingError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidChunkingError(f"overlap must not be negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidChunkingError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


# ---------------------------------------------------------------------------
# Document identity
# ---------------------------------------------------------------------------

def compute_document_id(path: str, content: str) -> str:
    """Return a stable 8-hex-character id for a ``(path, content)`` pair."""
    data = (path + content).encode("utf-8", "surrogatepass")
    digest = hashlib.md5(data, usedforsecurity=False)
    return digest.hexdigest()[:DOCUMENT_ID_LENGTH]


def make_chunk_id(document_id: str, ordinal: int) -> str:
    """Namespace a chunk ordinal under its document id."""
    return f"{document_id}-{ordinal}"
