"""Codebase RAG Backend Application.

This is the main entry point for the codebase RAG service.  It indexes a
project directory into searchable chunks and answers questions about the
code by handing retrieved context to a completion model.

Modules:
    - rag: indexing, retrieval, context assembly and snapshot persistence
    - completion: completion back-ends (Ollama)

Run with::

    uvicorn codebase_rag.main:app --port 8000

or ``codebase-rag`` (host and port from ``rag.settings.yaml``).
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from codebase_rag.completion import OllamaProvider
from codebase_rag.config import get_config
from codebase_rag.rag.indexer import RagIndexer
from codebase_rag.rag.router import get_indexer, router as rag_router, set_indexer
from codebase_rag.rag.snapshot import SnapshotStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# httpx/httpcore log every connection to the completion server.
for _noisy in (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def build_indexer(config) -> RagIndexer:
    """Construct the RagIndexer described by *config* (an AppConfig)."""
    rag_cfg = config.rag
    completion_cfg = config.completion

    provider = OllamaProvider(
        base_url=completion_cfg.base_url,
        timeout=completion_cfg.timeout_seconds,
    )
    snapshot_store = SnapshotStore(rag_cfg.snapshot_path) if rag_cfg.persist else None

    return RagIndexer(
        project_root=rag_cfg.project_root,
        provider=provider,
        snapshot_store=snapshot_store,
        chunk_size=rag_cfg.chunk_size,
        chunk_overlap=rag_cfg.chunk_overlap,
        batch_width=rag_cfg.batch_width,
        max_files=rag_cfg.max_files,
        max_depth=rag_cfg.max_depth,
        default_top_k=rag_cfg.default_top_k,
        extensions=rag_cfg.extensions,
        exclude_patterns=rag_cfg.exclude_patterns,
        default_model=completion_cfg.default_model,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    indexer = build_indexer(config)
    loaded = indexer.load()
    set_indexer(indexer)
    logger.info(
        "RAG indexer ready: project_root=%s snapshot_loaded=%s documents=%d",
        indexer.project_root,
        loaded,
        indexer.size,
    )

    yield  # Application runs here

    # Shutdown
    indexer = get_indexer()
    if indexer is not None:
        # Every index_directory call has already written the snapshot.
        await indexer.aclose()
        set_indexer(None)
    logger.info("Application shutdown complete")


# Create FastAPI application with metadata
app = FastAPI(
    title="Codebase RAG API",
    description="Keyword retrieval over a local codebase with LLM-backed answers",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(rag_router)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    config = get_config()
    uvicorn.run(
        "codebase_rag.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level,
    )


if __name__ == "__main__":
    run()
