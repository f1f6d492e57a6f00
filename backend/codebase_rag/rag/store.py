"""Ordered document store keyed by path."""
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Document


class DocumentStore:
    """Documents in indexing order with an O(1) ``path → position`` side index.

    Re-adding a known path replaces the document at its existing position,
    so positions are stable across re-indexing.
    """

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: List[Document] = []
        self._positions: Dict[str, int] = {}
        for doc in documents:
            self.upsert(doc)

    def upsert(self, doc: Document) -> bool:
        """Insert or replace *doc*.  Returns ``True`` if it replaced one."""
        position = self._positions.get(doc.path)
        if position is not None:
            self._documents[position] = doc
            return True
        self._positions[doc.path] = len(self._documents)
        self._documents.append(doc)
        return False

    def position_of(self, path: str) -> Optional[int]:
        return self._positions.get(path)

    def copy(self) -> "DocumentStore":
        """Shallow copy; documents are replaced wholesale, never mutated."""
        clone = DocumentStore()
        clone._documents = list(self._documents)
        clone._positions = dict(self._positions)
        return clone

    @property
    def documents(self) -> Tuple[Document, ...]:
        return tuple(self._documents)

    @property
    def total_chunks(self) -> int:
        return sum(len(doc.chunks) for doc in self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, path: object) -> bool:
        return path in self._positions
