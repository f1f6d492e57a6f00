"""Lexical-overlap retrieval over the inverted index.

A chunk's score is the fraction of query tokens that occur as substrings of
its lowercase text.  Only chunks sharing at least one token with the query
are scored.
"""
import logging
from dataclasses import dataclass
from typing import List, Sequence

from .inverted_index import InvertedIndex, tokenize
from .models import ChunkRef, Document

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
MIN_SCORE = 0.1


@dataclass
class RetrievedChunk:
    """A scored chunk returned by ``search``."""

    path: str
    filename: str
    content: str
    score: float
    chunk_id: str = ""


def overlap_score(query_tokens: Sequence[str], text_lower: str) -> float:
    """Fraction of *query_tokens* contained in *text_lower*, in ``[0, 1]``."""
    if not query_tokens:
        return 0.0
    matches = sum(1 for token in query_tokens if token in text_lower)
    return matches / len(query_tokens)


def search(
    documents: Sequence[Document],
    index: InvertedIndex,
    query: str,
    top_k: int = DEFAULT_TOP_K,
) -> List[RetrievedChunk]:
    """Return up to *top_k* chunks for *query*, best first.

    Equal scores keep indexing order (document position, then chunk
    ordinal), so results are reproducible.

    Args:
        documents: The document store the index was built from.
        index:     Inverted index over *documents*.
        query:     Free-text query.
        top_k:     Maximum results.

    Returns:
        Chunks with ``score > MIN_SCORE`` sorted by score descending.
    """
    query_tokens = tokenize(query)
    if not query_tokens or top_k <= 0:
        return []

    scored: List[tuple[float, ChunkRef]] = []
    for ref in index.candidates(query_tokens):
        if ref.doc_index >= len(documents):
            continue
        doc = documents[ref.doc_index]
        if ref.chunk_index >= len(doc.chunks):
            continue
        score = overlap_score(query_tokens, doc.chunks[ref.chunk_index].lowercase_content)
        if score > MIN_SCORE:
            scored.append((score, ref))

    scored.sort(key=lambda item: (-item[0], item[1]))

    results: List[RetrievedChunk] = []
    for score, ref in scored[:top_k]:
        doc = documents[ref.doc_index]
        chunk = doc.chunks[ref.chunk_index]
        results.append(RetrievedChunk(
            path=doc.path,
            filename=doc.filename,
            content=chunk.content,
            score=score,
            chunk_id=chunk.id,
        ))

    logger.debug(
        "[retriever] query_tokens=%d candidates_scored=%d returned=%d",
        len(query_tokens), len(scored), len(results),
    )
    return results
