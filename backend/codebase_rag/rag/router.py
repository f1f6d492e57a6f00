"""RAG router: codebase retrieval endpoints.

Endpoints:
    POST /rag/index   Index a directory under the project root
    POST /rag/query   Answer a question from indexed context
    GET  /rag/status  Index statistics and indexed files
    POST /rag/clear   Drop the index and its snapshot
"""
import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from . import operations
from .indexer import RagIndexer
from .schemas import (
    ClearResponse,
    ErrorResponse,
    IndexDirectoryRequest,
    IndexDirectoryResponse,
    QueryRequest,
    QueryResponse,
    StatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rag", tags=["rag"])

# ---------------------------------------------------------------------------
# Indexer handle
# ---------------------------------------------------------------------------

_indexer: Optional[RagIndexer] = None


def get_indexer() -> Optional[RagIndexer]:
    """Return the RagIndexer registered at startup, or None if not configured."""
    return _indexer


def set_indexer(indexer: Optional[RagIndexer]) -> None:
    """Register (or clear) the RagIndexer the endpoints operate on."""
    global _indexer
    _indexer = indexer


def _not_configured() -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": "RAG indexer not configured"},
        status_code=503,
    )


def _error_response(error: ErrorResponse) -> JSONResponse:
    return JSONResponse(error.model_dump(by_alias=True), status_code=error.status_code)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/index", response_model=IndexDirectoryResponse)
async def index_directory(request: IndexDirectoryRequest) -> IndexDirectoryResponse | JSONResponse:
    """Index the files under a project directory."""
    logger.info(
        "[rag/index] Received: directory=%s max_files=%s",
        request.directory, request.max_files,
    )
    indexer = get_indexer()
    if indexer is None:
        logger.warning("[rag/index] Indexer not configured, returning 503")
        return _not_configured()

    try:
        result = await operations.rag_index_directory(indexer, request)
    except Exception as exc:
        logger.exception("[rag/index] Indexing failed: %s", exc)
        return JSONResponse(
            {"success": False, "error": f"Indexing failed: {exc}"},
            status_code=500,
        )

    if isinstance(result, ErrorResponse):
        return _error_response(result)

    logger.info(
        "[rag/index] Success: indexed=%d total_documents=%d total_chunks=%d",
        result.indexed, result.total_documents, result.total_chunks,
    )
    return result


@router.post("/query", response_model=QueryResponse)
async def query_codebase(request: QueryRequest) -> QueryResponse | JSONResponse:
    """Answer a question using the indexed codebase as context."""
    indexer = get_indexer()
    if indexer is None:
        return _not_configured()

    try:
        result = await operations.rag_query(indexer, request)
    except Exception as exc:
        logger.exception("[rag/query] Query failed: %s", exc)
        return JSONResponse(
            {"success": False, "error": f"Query failed: {exc}"},
            status_code=500,
        )

    if isinstance(result, ErrorResponse):
        return _error_response(result)
    return result


@router.get("/status", response_model=StatusResponse)
async def index_status() -> StatusResponse | JSONResponse:
    """Report how many documents and chunks are indexed."""
    indexer = get_indexer()
    if indexer is None:
        return _not_configured()
    return operations.rag_status(indexer)


@router.post("/clear", response_model=ClearResponse)
async def clear_index() -> ClearResponse | JSONResponse:
    """Drop every indexed document and delete the snapshot."""
    indexer = get_indexer()
    if indexer is None:
        return _not_configured()
    return await operations.rag_clear(indexer)
