"""Shared test fixtures and configuration for backend tests."""
from pathlib import Path
from typing import Dict
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from codebase_rag.completion import CompletionProvider, CompletionResult
from codebase_rag.main import app


def write_tree(root: Path, files: Dict[str, str]) -> None:
    """Create *files* (relative path → content) beneath *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def api_client():
    """Provide a TestClient for the main FastAPI app.

    The lifespan is not entered; tests register their own indexer.
    """
    return TestClient(app)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def provider() -> AsyncMock:
    """A completion provider that always answers ``"generated answer"``."""
    mock = AsyncMock(spec=CompletionProvider)
    mock.complete.return_value = CompletionResult(content="generated answer", model="test-model")
    return mock
