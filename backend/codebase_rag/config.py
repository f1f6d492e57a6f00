"""Codebase RAG application configuration.

Loads settings from a single YAML file, ``rag.settings.yaml``.  Its location
can be overridden with the ``RAG_SETTINGS_PATH`` environment variable;
otherwise it is looked up in the working directory.  Every key is optional.

Example::

    server:
      port: 8000
    logging:
      level: debug
    rag:
      project_root: ..
      snapshot_path: .jules/rag-index.json
      batch_width: 8
    completion:
      base_url: http://localhost:11434
      default_model: qwen2.5-coder:7b
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from codebase_rag.rag.walker import DEFAULT_EXCLUDE_PATTERNS, SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("rag.settings.yaml")
SETTINGS_ENV_VAR = "RAG_SETTINGS_PATH"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return data


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class LoggingSettings(BaseModel):
    level: str = "info"

    @field_validator("level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in {"debug", "info", "warning", "error", "critical"}:
            raise ValueError(f"Unknown log level: {value}")
        return value


class RagSettings(BaseModel):
    """Indexing, chunking and persistence settings."""
    project_root:     str       = "."
    snapshot_path:    str       = ".jules/rag-index.json"
    persist:          bool      = True
    chunk_size:       int       = Field(default=1000, gt=0)
    chunk_overlap:    int       = Field(default=200, ge=0)
    batch_width:      int       = Field(default=10, gt=0)
    max_files:        int       = Field(default=100, gt=0)
    max_depth:        int       = Field(default=10, ge=0)
    default_top_k:    int       = Field(default=5, ge=1)
    extensions:       List[str] = Field(default_factory=lambda: list(SUPPORTED_EXTENSIONS))
    exclude_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))

    @model_validator(mode="after")
    def _check_overlap(self) -> "RagSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class CompletionSettings(BaseModel):
    """Completion back-end used by RAG queries."""
    provider:        Literal["ollama"] = "ollama"
    base_url:        str               = "http://localhost:11434"
    default_model:   str               = "qwen2.5-coder:7b"
    timeout_seconds: float             = Field(default=120.0, gt=0)


class AppConfig(BaseModel):
    server:     ServerSettings     = Field(default_factory=ServerSettings)
    logging:    LoggingSettings    = Field(default_factory=LoggingSettings)
    rag:        RagSettings        = Field(default_factory=RagSettings)
    completion: CompletionSettings = Field(default_factory=CompletionSettings)


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def _resolve_paths(config: AppConfig, base_dir: Path) -> None:
    """Make ``project_root`` absolute against *base_dir* and the snapshot
    path absolute against the project root."""
    root = Path(config.rag.project_root)
    if not root.is_absolute():
        root = base_dir / root
    root = Path(os.path.abspath(root))
    config.rag.project_root = str(root)

    snapshot = Path(config.rag.snapshot_path)
    if not snapshot.is_absolute():
        snapshot = root / snapshot
    config.rag.snapshot_path = str(snapshot)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Path] = None) -> AppConfig:
    """Load settings into a fresh *AppConfig*.

    Args:
        settings_path: YAML file to read.  Defaults to ``$RAG_SETTINGS_PATH``
            or ``rag.settings.yaml`` in the working directory.  Relative
            paths inside the file resolve against the file's directory.
    """
    if settings_path is None:
        settings_path = Path(os.environ.get(SETTINGS_ENV_VAR) or SETTINGS_FILE)
    settings_path = Path(settings_path)

    config = AppConfig(**_load_yaml(settings_path))
    _resolve_paths(config, Path(os.path.abspath(settings_path)).parent)

    logger.info(
        "Settings loaded (server=%s:%s, project_root=%s, persist=%s, completion=%s)",
        config.server.host,
        config.server.port,
        config.rag.project_root,
        config.rag.persist,
        config.completion.base_url,
    )
    return config


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config (for testing)."""
    global _config
    _config = None
