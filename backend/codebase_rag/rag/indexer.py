"""Directory indexing pipeline and query service for the RAG engine.

``RagIndexer`` owns the document store and inverted index.  Indexing calls
are serialised by a single ``asyncio.Lock``; each one builds a new
``IndexState`` from a copy of the current store and publishes it with one
reference swap, so queries always read a complete, consistent state without
taking the lock.
"""
import asyncio
import functools
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from codebase_rag.completion import CompletionProvider

from .chunker import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_OVERLAP,
    chunk_text,
    compute_document_id,
    make_chunk_id,
    validate_chunking,
)
from .context import DEFAULT_MODEL, AnswerResult, ContextAssembler
from .errors import DirectoryNotFoundError, RagError
from .inverted_index import InvertedIndex
from .models import MAX_PREVIEW_CHARS, Chunk, Document
from .retriever import DEFAULT_TOP_K, RetrievedChunk, search
from .security import confine
from .snapshot import SnapshotStore
from .store import DocumentStore
from .walker import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_MAX_DEPTH, SUPPORTED_EXTENSIONS, walk

logger = logging.getLogger(__name__)

DEFAULT_BATCH_WIDTH = 10
DEFAULT_MAX_FILES = 100
MAX_REPORTED_FILES = 20


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------

@dataclass
class IndexedFile:
    path: str
    chunks: int


@dataclass
class IndexResult:
    """Outcome of one ``index_directory`` call."""

    indexed_count: int
    total_documents: int
    total_chunks: int
    files: List[IndexedFile] = field(default_factory=list)


@dataclass
class IndexStatus:
    indexed: bool
    documents: int
    total_chunks: int
    last_updated: Optional[str]
    files: List[IndexedFile] = field(default_factory=list)


@dataclass(frozen=True)
class IndexState:
    """Immutable view of the store and index that queries run against."""

    store: DocumentStore
    documents: tuple
    index: InvertedIndex
    last_updated: Optional[str] = None

    @classmethod
    def empty(cls) -> "IndexState":
        return cls.from_store(DocumentStore(), InvertedIndex(), None)

    @classmethod
    def from_store(
        cls,
        store: DocumentStore,
        index: InvertedIndex,
        last_updated: Optional[str],
    ) -> "IndexState":
        return cls(store=store, documents=store.documents, index=index, last_updated=last_updated)


# ---------------------------------------------------------------------------
# Indexer
# ---------------------------------------------------------------------------

class RagIndexer:
    """Indexes project directories and answers queries over them.

    Args:
        project_root:     Directory every indexing request is confined to.
        provider:         Completion back-end for ``answer``; optional.
        snapshot_store:   Persistence for warm restarts; optional.
        chunk_size:       Characters per chunk.
        chunk_overlap:    Characters shared by adjacent chunks.
        batch_width:      Files read concurrently per batch.
        max_files:        Default cap on files per indexing call.
        max_depth:        Maximum directory depth below the indexed root.
        default_top_k:    Context chunks per query when the caller names none.
        extensions:       Default indexable extensions.
        exclude_patterns: Default name substrings to skip.
        default_model:    Completion model when a query names none.
    """

    def __init__(
        self,
        project_root: str,
        provider: Optional[CompletionProvider] = None,
        snapshot_store: Optional[SnapshotStore] = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_OVERLAP,
        batch_width: int = DEFAULT_BATCH_WIDTH,
        max_files: int = DEFAULT_MAX_FILES,
        max_depth: int = DEFAULT_MAX_DEPTH,
        default_top_k: int = DEFAULT_TOP_K,
        extensions: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        validate_chunking(chunk_size, chunk_overlap)
        if batch_width <= 0:
            raise ValueError(f"batch_width must be positive, got {batch_width}")

        self._project_root = Path(os.path.abspath(project_root))
        self._snapshot_store = snapshot_store
        self._provider = provider
        self._assembler = (
            ContextAssembler(provider, default_model=default_model) if provider else None
        )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._batch_width = batch_width
        self._max_files = max_files
        self._max_depth = max_depth
        self._default_top_k = default_top_k
        self._extensions = tuple(extensions) if extensions is not None else SUPPORTED_EXTENSIONS
        self._exclude_patterns = (
            tuple(exclude_patterns) if exclude_patterns is not None else DEFAULT_EXCLUDE_PATTERNS
        )
        self._state = IndexState.empty()
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def size(self) -> int:
        return len(self._state.documents)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def index_directory(
        self,
        directory: str,
        extensions: Optional[Iterable[str]] = None,
        max_files: Optional[int] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> IndexResult:
        """Index the files under *directory* and rebuild the inverted index.

        Files are read in batches of ``batch_width``; each batch is awaited
        as a whole before the next one starts.  Unreadable files are skipped.
        A file already in the store is replaced at its existing position.

        Raises:
            PathTraversalError: If *directory* escapes the project root.
            DirectoryNotFoundError: If the resolved directory does not exist.
        """
        resolved = confine(directory, self._project_root)
        if not resolved.is_dir():
            raise DirectoryNotFoundError(str(resolved))

        extensions = self._extensions if extensions is None else tuple(extensions)
        exclude_patterns = (
            self._exclude_patterns if exclude_patterns is None else tuple(exclude_patterns)
        )
        max_files = self._max_files if max_files is None else max_files
        skip_paths = ()
        if self._snapshot_store is not None:
            skip_paths = (os.path.abspath(self._snapshot_store.path),)

        async with self._write_lock:
            loop = asyncio.get_running_loop()
            files = await loop.run_in_executor(
                None,
                functools.partial(
                    walk,
                    resolved,
                    extensions=extensions,
                    exclude_patterns=exclude_patterns,
                    max_files=max_files,
                    max_depth=self._max_depth,
                    skip_paths=skip_paths,
                ),
            )
            logger.info(
                "[RagIndexer] index_directory: dir=%s candidates=%d batch_width=%d",
                resolved, len(files), self._batch_width,
            )

            store = self._state.store.copy()
            indexed: List[IndexedFile] = []
            replaced = 0

            for i in range(0, len(files), self._batch_width):
                batch = files[i:i + self._batch_width]
                documents = await asyncio.gather(*(self._load_document(p) for p in batch))
                for doc in documents:
                    if doc is None:
                        continue
                    if store.upsert(doc):
                        replaced += 1
                    indexed.append(IndexedFile(path=doc.path, chunks=len(doc.chunks)))

            index = await loop.run_in_executor(None, InvertedIndex.build, store.documents)
            last_updated = _utc_now()
            self._state = IndexState.from_store(store, index, last_updated)

            logger.info(
                "[RagIndexer] Indexed %d file(s) (%d replaced); store has %d document(s), %d chunk(s), %d token(s)",
                len(indexed), replaced, len(store), store.total_chunks, len(index),
            )

            if self._snapshot_store is not None:
                await loop.run_in_executor(None, self.save)

        return IndexResult(
            indexed_count=len(indexed),
            total_documents=len(store),
            total_chunks=store.total_chunks,
            files=indexed[:MAX_REPORTED_FILES],
        )

    async def _load_document(self, path: str) -> Optional[Document]:
        """Read and chunk one file, or return ``None`` if it cannot be read."""
        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, _read_text, path)
        except OSError as exc:
            logger.warning("[RagIndexer] Skipping unreadable file %s: %s", path, exc)
            return None
        return self.build_document(path, content)

    def build_document(self, path: str, content: str) -> Document:
        """Chunk *content* and wrap it in a ``Document`` for *path*."""
        doc_id = compute_document_id(path, content)
        chunks = [
            Chunk(
                id=make_chunk_id(doc_id, ordinal),
                content=piece.content,
                start_offset=piece.start,
                end_offset=piece.end,
                lowercase_content=piece.lowercase_content,
            )
            for ordinal, piece in enumerate(
                chunk_text(content, self._chunk_size, self._chunk_overlap)
            )
        ]
        return Document(
            id=doc_id,
            path=path,
            filename=os.path.basename(path),
            extension=os.path.splitext(path)[1],
            preview_content=content[:MAX_PREVIEW_CHARS],
            chunks=chunks,
            indexed_at=_utc_now(),
        )

    # ------------------------------------------------------------------
    # Queries (lock-free)
    # ------------------------------------------------------------------

    def search(self, query: str, top_k: Optional[int] = None) -> List[RetrievedChunk]:
        """Return the best-matching chunks for *query*."""
        if top_k is None:
            top_k = self._default_top_k
        state = self._state
        return search(state.documents, state.index, query, top_k)

    async def answer(
        self,
        query: str,
        model: Optional[str] = None,
        top_k: Optional[int] = None,
    ) -> AnswerResult:
        """Answer *query* from retrieved context.

        Raises:
            NotIndexedError: If nothing has been indexed.
            NoRelevantContextError: If no chunk scores above the threshold.
            RagError: If no completion provider is configured.
        """
        if self._assembler is None:
            raise RagError("No completion provider configured", status_code=503)
        if top_k is None:
            top_k = self._default_top_k
        state = self._state
        return await self._assembler.answer(state.documents, state.index, query, model, top_k)

    def status(self) -> IndexStatus:
        state = self._state
        return IndexStatus(
            indexed=len(state.documents) > 0,
            documents=len(state.documents),
            total_chunks=state.store.total_chunks,
            last_updated=state.last_updated,
            files=[IndexedFile(path=d.path, chunks=len(d.chunks)) for d in state.documents],
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def clear(self) -> None:
        """Drop every document and posting and delete the snapshot file."""
        async with self._write_lock:
            self._state = IndexState.empty()
            if self._snapshot_store is not None:
                self._snapshot_store.delete()
        logger.info("[RagIndexer] Index cleared")

    def load(self) -> bool:
        """Restore state from the snapshot store.  Returns ``True`` on success.

        On any failure the indexer keeps (or starts from) an empty state.
        """
        if self._snapshot_store is None:
            return False
        snapshot = self._snapshot_store.load()
        if snapshot is None:
            return False
        store = DocumentStore(snapshot.documents)
        self._state = IndexState.from_store(store, snapshot.index, snapshot.last_updated)
        logger.info(
            "[RagIndexer] Loaded index with %d document(s) (index_rebuilt=%s)",
            len(store), snapshot.index_rebuilt,
        )
        return True

    def save(self) -> bool:
        """Persist the current state.  Returns ``False`` if not persisted."""
        if self._snapshot_store is None:
            return False
        state = self._state
        return self._snapshot_store.save(state.documents, state.index, state.last_updated)

    async def aclose(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
