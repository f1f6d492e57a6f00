"""Typed records for indexed documents, their chunks and index postings."""
from dataclasses import dataclass, field
from typing import List

MAX_PREVIEW_CHARS = 5000


# ---------------------------------------------------------------------------
# Chunk
# ---------------------------------------------------------------------------

@dataclass
class Chunk:
    """A window ``[start_offset, end_offset)`` of a document's text.

    ``lowercase_content`` is derived from ``content`` once so that scoring
    never case-folds the same text twice.  It is not persisted.
    """

    id: str
    content: str
    start_offset: int
    end_offset: int
    lowercase_content: str = field(default="", repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.lowercase_content:
            self.lowercase_content = self.content.lower()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "startOffset": self.start_offset,
            "endOffset": self.end_offset,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Chunk":
        """Restore a chunk, rejecting offsets that cannot describe ``content``.

        Raises:
            ValueError: If ``0 <= startOffset < endOffset`` does not hold or
                the range length differs from the content length.
        """
        content = str(d["content"])
        start, end = int(d["startOffset"]), int(d["endOffset"])
        if not 0 <= start < end:
            raise ValueError(f"Chunk {d['id']!r} has invalid offsets [{start}, {end})")
        if end - start != len(content):
            raise ValueError(
                f"Chunk {d['id']!r} spans {end - start} characters but holds {len(content)}"
            )
        return cls(id=str(d["id"]), content=content, start_offset=start, end_offset=end)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

@dataclass
class Document:
    """One indexed file.

    ``path`` is the identity key inside the store.  ``id`` is a content hash
    used only to namespace chunk ids.
    """

    id: str
    path: str
    filename: str
    extension: str
    preview_content: str
    chunks: List[Chunk]
    indexed_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.path,
            "filename": self.filename,
            "extension": self.extension,
            "previewContent": self.preview_content,
            "chunks": [c.to_dict() for c in self.chunks],
            "indexedAt": self.indexed_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Document":
        return cls(
            id=str(d["id"]),
            path=str(d["path"]),
            filename=str(d["filename"]),
            extension=str(d.get("extension", "")),
            preview_content=str(d.get("previewContent", ""))[:MAX_PREVIEW_CHARS],
            chunks=[Chunk.from_dict(c) for c in d.get("chunks", [])],
            indexed_at=str(d.get("indexedAt", "")),
        )


# ---------------------------------------------------------------------------
# Postings
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class ChunkRef:
    """Reference to ``documents[doc_index].chunks[chunk_index]``.

    Ordering follows indexing order, which the retriever uses to break
    score ties.
    """

    doc_index: int
    chunk_index: int

    def to_list(self) -> list[int]:
        return [self.doc_index, self.chunk_index]
