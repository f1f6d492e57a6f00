"""JSON snapshot persistence for the document store and inverted index.

Layout::

    {
      "version": "1.0",
      "lastUpdated": "<iso timestamp or null>",
      "documents": [ {...Document.to_dict()...}, ... ],
      "invertedIndex": { "<token>": [[doc_index, chunk_index], ...], ... }
    }

A snapshot whose ``invertedIndex`` is missing or inconsistent with its
documents is still loaded; the index is rebuilt from the documents.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .inverted_index import InvertedIndex
from .models import Document

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"
DEFAULT_SNAPSHOT_PATH = Path(".jules") / "rag-index.json"


@dataclass
class Snapshot:
    """In-memory form of a loaded snapshot."""

    documents: List[Document]
    index: InvertedIndex
    last_updated: Optional[str]
    index_rebuilt: bool = False


class SnapshotStore:
    """Reads and writes a single snapshot file.

    Args:
        path: Snapshot file location; its parent is created on save.
    """

    def __init__(self, path: Path = DEFAULT_SNAPSHOT_PATH) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(
        self,
        documents: Sequence[Document],
        index: InvertedIndex,
        last_updated: Optional[str],
    ) -> bool:
        """Write a snapshot.  Returns ``False`` (and logs) on failure."""
        payload = {
            "version": SNAPSHOT_VERSION,
            "lastUpdated": last_updated,
            "documents": [doc.to_dict() for doc in documents],
            "invertedIndex": index.to_dict(),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("[SnapshotStore] Failed to save snapshot %s: %s", self._path, exc)
            return False

        logger.info(
            "[SnapshotStore] Saved %d document(s) to %s", len(documents), self._path
        )
        return True

    def load(self) -> Optional[Snapshot]:
        """Read the snapshot, or return ``None`` if absent or unreadable."""
        if not self._path.exists():
            return None

        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError("snapshot root is not an object")
            documents = [Document.from_dict(d) for d in payload.get("documents") or []]
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("[SnapshotStore] Failed to load snapshot %s: %s", self._path, exc)
            return None

        if len({doc.path for doc in documents}) != len(documents):
            logger.warning("[SnapshotStore] Snapshot %s has duplicate paths; ignoring it", self._path)
            return None

        # Stored postings are kept only when they equal those the documents produce.
        index = InvertedIndex.build(documents)
        raw_index = payload.get("invertedIndex")
        stored = None if raw_index is None else InvertedIndex.from_dict(raw_index, documents)
        rebuilt = stored != index
        if rebuilt:
            logger.info(
                "[SnapshotStore] Inverted index in %s is missing or does not match its documents; rebuilt",
                self._path,
            )

        last_updated = payload.get("lastUpdated")
        logger.info(
            "[SnapshotStore] Loaded %d document(s) from %s", len(documents), self._path
        )
        return Snapshot(
            documents=documents,
            index=index,
            last_updated=str(last_updated) if last_updated is not None else None,
            index_rebuilt=rebuilt,
        )

    def delete(self) -> bool:
        """Remove the snapshot file.  A missing file is not an error."""
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("[SnapshotStore] Failed to delete snapshot %s: %s", self._path, exc)
            return False
        return True
