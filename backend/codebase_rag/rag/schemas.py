"""Pydantic schemas for the RAG (codebase retrieval) API.

Bodies use camelCase on the wire (``maxFiles``, ``totalDocuments``) and
accept snake_case field names as well.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class IndexDirectoryRequest(_CamelModel):
    """Request body for POST /rag/index."""

    directory: str = Field(..., min_length=1, description="Directory relative to the project root")
    extensions: Optional[List[str]] = Field(
        default=None, description="File extensions to index (e.g. ['.py', '.ts'])"
    )
    max_files: Optional[int] = Field(
        default=None, ge=1, description="Maximum number of files to index"
    )
    exclude_patterns: Optional[List[str]] = Field(
        default=None, description="Skip entries whose name contains any of these"
    )


class QueryRequest(_CamelModel):
    """Request body for POST /rag/query."""

    query: str = Field(..., min_length=1, description="Question about the codebase")
    model: Optional[str] = Field(default=None, description="Completion model override")
    top_k: Optional[int] = Field(
        default=None, ge=1, le=50, description="Max context chunks (server default when omitted)"
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class IndexedFileItem(_CamelModel):
    path: str
    chunks: int


class IndexDirectoryResponse(_CamelModel):
    """Response for POST /rag/index."""

    success: bool = True
    indexed: int
    total_documents: int
    total_chunks: int
    files: List[IndexedFileItem]


class SourceItem(_CamelModel):
    """A file chunk that was used as context."""

    file: str
    path: str
    relevance: str


class QueryResponse(_CamelModel):
    """Response for POST /rag/query."""

    success: bool = True
    response: str
    model: str
    sources_used: List[SourceItem]
    total_indexed: int


class StatusResponse(_CamelModel):
    """Response for GET /rag/status."""

    indexed: bool
    documents: int
    total_chunks: int
    last_updated: Optional[str] = None
    files: List[IndexedFileItem]


class ClearResponse(_CamelModel):
    """Response for POST /rag/clear."""

    success: bool = True
    message: str


class ErrorResponse(_CamelModel):
    """Structured failure returned instead of raising across the API."""

    success: bool = False
    error: str
    status_code: int = Field(default=500, exclude=True)
