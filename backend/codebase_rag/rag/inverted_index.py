"""Token → chunk postings used to bound retrieval to plausible candidates.

Tokens are lowercase alphanumeric runs longer than two characters.  The
same ``tokenize`` is applied to filenames, chunk text and queries.
"""
import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .models import ChunkRef, Document

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 3

# Runs of letters and digits; underscore and punctuation separate tokens.
_TOKEN_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> List[str]:
    """Return the distinct tokens of *text* in first-seen order."""
    seen: Dict[str, None] = {}
    for token in _TOKEN_RE.findall(text.lower()):
        if len(token) >= MIN_TOKEN_LENGTH:
            seen.setdefault(token, None)
    return list(seen)


class InvertedIndex:
    """Mapping from token to the set of chunks whose text or filename has it."""

    def __init__(self) -> None:
        self._postings: Dict[str, Set[ChunkRef]] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, documents: Sequence[Document]) -> "InvertedIndex":
        """Build a fresh index covering every chunk of *documents*."""
        index = cls()
        for doc_index, doc in enumerate(documents):
            index.add_document(doc_index, doc)
        logger.debug(
            "[InvertedIndex] Built %d token(s) over %d document(s)",
            len(index), len(documents),
        )
        return index

    def add_document(self, doc_index: int, doc: Document) -> None:
        """Register the tokens of *doc* against each of its chunks."""
        filename_tokens = tokenize(doc.filename)
        for chunk_index, chunk in enumerate(doc.chunks):
            ref = ChunkRef(doc_index, chunk_index)
            for token in filename_tokens:
                self._postings.setdefault(token, set()).add(ref)
            for token in tokenize(chunk.lowercase_content):
                self._postings.setdefault(token, set()).add(ref)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, token: str) -> frozenset[ChunkRef]:
        """Return the postings for *token* (empty if unknown)."""
        return frozenset(self._postings.get(token, ()))

    def candidates(self, tokens: Iterable[str]) -> Set[ChunkRef]:
        """Return the union of postings over *tokens*."""
        refs: Set[ChunkRef] = set()
        for token in tokens:
            refs.update(self.lookup(token))
        return refs

    def __len__(self) -> int:
        return len(self._postings)

    def __contains__(self, token: object) -> bool:
        return token in self._postings

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InvertedIndex):
            return NotImplemented
        return self._postings == other._postings

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, List[List[int]]]:
        """Serialise as ``token → [[doc_index, chunk_index], ...]``."""
        return {
            token: [ref.to_list() for ref in sorted(refs)]
            for token, refs in self._postings.items()
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, object],
        documents: Sequence[Document],
    ) -> Optional["InvertedIndex"]:
        """Restore an index, or return ``None`` if *data* does not fit *documents*.

        Every reference must be a ``[doc_index, chunk_index]`` pair that points
        at an existing chunk.
        """
        if not isinstance(data, Mapping):
            return None

        index = cls()
        for token, raw_refs in data.items():
            if not isinstance(token, str) or not isinstance(raw_refs, list):
                return None
            refs: Set[ChunkRef] = set()
            for raw in raw_refs:
                if (
                    not isinstance(raw, list)
                    or len(raw) != 2
                    or not all(isinstance(v, int) and not isinstance(v, bool) for v in raw)
                ):
                    return None
                doc_index, chunk_index = raw
                if not 0 <= doc_index < len(documents):
                    return None
                if not 0 <= chunk_index < len(documents[doc_index].chunks):
                    return None
                refs.add(ChunkRef(doc_index, chunk_index))
            if refs:
                index._postings[token] = refs
        return index
