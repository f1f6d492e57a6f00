"""Exceptions raised by the RAG engine.

Every error that is meant to reach the caller as a structured
``{"success": false, "error": ...}`` result derives from ``RagError`` and
carries the HTTP status the router answers with.
"""


class RagError(Exception):
    """Base exception for user-visible RAG failures."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PathTraversalError(RagError):
    """Raised when a requested directory resolves outside the project root."""
    def __init__(
        self,
        message: str = "Path traversal is not allowed. Directory must be within project root.",
    ):
        super().__init__(message, status_code=400)


class DirectoryNotFoundError(RagError):
    """Raised when the directory to index does not exist."""
    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Directory not found: {directory}", status_code=404)


class NotIndexedError(RagError):
    """Raised when a query arrives before anything has been indexed."""
    def __init__(self, message: str = "No documents indexed. Use the index operation first."):
        super().__init__(message, status_code=409)


class NoRelevantContextError(RagError):
    """Raised when retrieval finds nothing above the score threshold."""
    def __init__(self, message: str = "No relevant context found for your query."):
        super().__init__(message, status_code=404)


class InvalidChunkingError(ValueError):
    """Raised for chunk settings whose step size would not be positive."""
