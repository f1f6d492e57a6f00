"""The four RAG operations exposed to callers.

Each takes a request model and returns a response model.  ``RagError``
failures come back as ``ErrorResponse`` values; completion-provider errors
are not caught here and propagate to the caller.
"""
import logging
from typing import Union

from .errors import RagError
from .indexer import RagIndexer
from .schemas import (
    ClearResponse,
    ErrorResponse,
    IndexDirectoryRequest,
    IndexDirectoryResponse,
    IndexedFileItem,
    QueryRequest,
    QueryResponse,
    SourceItem,
    StatusResponse,
)

logger = logging.getLogger(__name__)


def _error(exc: RagError) -> ErrorResponse:
    return ErrorResponse(error=exc.message, status_code=exc.status_code)


async def rag_index_directory(
    indexer: RagIndexer,
    request: IndexDirectoryRequest,
) -> Union[IndexDirectoryResponse, ErrorResponse]:
    """Index a directory under the project root."""
    try:
        result = await indexer.index_directory(
            request.directory,
            extensions=request.extensions,
            max_files=request.max_files,
            exclude_patterns=request.exclude_patterns,
        )
    except RagError as exc:
        logger.warning("[rag_index_directory] %s (directory=%s)", exc.message, request.directory)
        return _error(exc)

    return IndexDirectoryResponse(
        indexed=result.indexed_count,
        total_documents=result.total_documents,
        total_chunks=result.total_chunks,
        files=[IndexedFileItem(path=f.path, chunks=f.chunks) for f in result.files],
    )


async def rag_query(
    indexer: RagIndexer,
    request: QueryRequest,
) -> Union[QueryResponse, ErrorResponse]:
    """Answer a question from indexed context."""
    try:
        answer = await indexer.answer(request.query, model=request.model, top_k=request.top_k)
    except RagError as exc:
        logger.info("[rag_query] %s", exc.message)
        return _error(exc)

    return QueryResponse(
        response=answer.response,
        model=answer.model,
        sources_used=[
            SourceItem(file=s.file, path=s.path, relevance=s.relevance)
            for s in answer.sources_used
        ],
        total_indexed=answer.total_indexed,
    )


def rag_status(indexer: RagIndexer) -> StatusResponse:
    status = indexer.status()
    return StatusResponse(
        indexed=status.indexed,
        documents=status.documents,
        total_chunks=status.total_chunks,
        last_updated=status.last_updated,
        files=[IndexedFileItem(path=f.path, chunks=f.chunks) for f in status.files],
    )


async def rag_clear(indexer: RagIndexer) -> ClearResponse:
    await indexer.clear()
    return ClearResponse(message="RAG index cleared")
