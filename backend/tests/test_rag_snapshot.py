"""Tests for JSON snapshot persistence."""
import json
from pathlib import Path

import pytest

from codebase_rag.rag.inverted_index import InvertedIndex
from codebase_rag.rag.models import Chunk, ChunkRef, Document
from codebase_rag.rag.snapshot import SNAPSHOT_VERSION, SnapshotStore


def _docs():
    return [
        Document(
            id="aaaa1111",
            path="/p/auth.py",
            filename="auth.py",
            extension=".py",
            preview_content="def login(user): ...",
            chunks=[
                Chunk(id="aaaa1111-0", content="def login(user): ...", start_offset=0, end_offset=20),
            ],
            indexed_at="2024-01-01T00:00:00+00:00",
        ),
        Document(
            id="bbbb2222",
            path="/p/db.py",
            filename="db.py",
            extension=".py",
            preview_content="Connection Pool",
            chunks=[
                Chunk(id="bbbb2222-0", content="Connection", start_offset=0, end_offset=10),
                Chunk(id="bbbb2222-1", content="ion Pool", start_offset=7, end_offset=15),
            ],
            indexed_at="2024-01-01T00:00:01+00:00",
        ),
    ]


class TestSnapshotSaveLoad:
    def test_save_creates_parent_directory(self, tmp_path: Path):
        store = SnapshotStore(tmp_path / ".jules" / "rag-index.json")
        docs = _docs()
        assert store.save(docs, InvertedIndex.build(docs), "2024-01-02T00:00:00+00:00")
        assert store.path.exists()

    def test_file_layout(self, tmp_path: Path):
        store = SnapshotStore(tmp_path / "snap.json")
        docs = _docs()
        store.save(docs, InvertedIndex.build(docs), "ts")
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["version"] == SNAPSHOT_VERSION
        assert data["lastUpdated"] == "ts"
        assert data["documents"][1]["chunks"][1] == {
            "id": "bbbb2222-1", "content": "ion Pool", "startOffset": 7, "endOffset": 15,
        }
        assert data["invertedIndex"]["login"] == [[0, 0]]

    def test_load_restores_documents_and_index(self, tmp_path: Path):
        store = SnapshotStore(tmp_path / "snap.json")
        docs = _docs()
        store.save(docs, InvertedIndex.build(docs), "ts")

        snapshot = store.load()
        assert snapshot is not None
        assert snapshot.documents == docs
        assert snapshot.last_updated == "ts"
        assert not snapshot.index_rebuilt
        assert snapshot.index.lookup("pool") == frozenset({ChunkRef(1, 1)})
        # lowercase copy is recomputed, not stored
        assert snapshot.documents[1].chunks[0].lowercase_content == "connection"

    def test_load_missing_file(self, tmp_path: Path):
        assert SnapshotStore(tmp_path / "none.json").load() is None

    def test_load_corrupt_json(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        path.write_text("{not json", encoding="utf-8")
        assert SnapshotStore(path).load() is None

    def test_load_malformed_documents(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        path.write_text(json.dumps({"documents": [{"path": "/p/x"}]}), encoding="utf-8")
        assert SnapshotStore(path).load() is None

    def test_save_failure_returns_false(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        store = SnapshotStore(blocker / "nested" / "snap.json")
        assert store.save([], InvertedIndex(), None) is False


class TestSnapshotIndexRebuild:
    def _write(self, path: Path, inverted_index):
        docs = _docs()
        payload = {
            "version": SNAPSHOT_VERSION,
            "lastUpdated": None,
            "documents": [d.to_dict() for d in docs],
        }
        if inverted_index is not None:
            payload["invertedIndex"] = inverted_index
        path.write_text(json.dumps(payload), encoding="utf-8")

    def test_missing_index_is_rebuilt(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        self._write(path, None)
        snapshot = SnapshotStore(path).load()
        assert snapshot is not None
        assert snapshot.index_rebuilt
        assert snapshot.index.lookup("login") == frozenset({ChunkRef(0, 0)})
        assert len(snapshot.index) > 0

    def test_malformed_index_is_rebuilt(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        self._write(path, {"login": [[9, 9]]})
        snapshot = SnapshotStore(path).load()
        assert snapshot.index_rebuilt
        assert snapshot.index.lookup("connection") == frozenset({ChunkRef(1, 0)})

    def test_index_of_wrong_type_is_rebuilt(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        self._write(path, ["not", "a", "mapping"])
        snapshot = SnapshotStore(path).load()
        assert snapshot.index_rebuilt
        assert "login" in snapshot.index

    def test_empty_index_section_is_rebuilt(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        self._write(path, {})
        snapshot = SnapshotStore(path).load()
        assert snapshot.index_rebuilt
        assert snapshot.index == InvertedIndex.build(snapshot.documents)
        assert snapshot.index.lookup("login") == frozenset({ChunkRef(0, 0)})

    def test_index_missing_tokens_is_rebuilt(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        stale = InvertedIndex.build(_docs()).to_dict()
        del stale["pool"]
        self._write(path, stale)
        snapshot = SnapshotStore(path).load()
        assert snapshot.index_rebuilt
        assert snapshot.index.lookup("pool") == frozenset({ChunkRef(1, 1)})

    def test_index_with_extra_postings_is_rebuilt(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        stale = InvertedIndex.build(_docs()).to_dict()
        stale["removed"] = [[0, 0]]
        self._write(path, stale)
        snapshot = SnapshotStore(path).load()
        assert snapshot.index_rebuilt
        assert "removed" not in snapshot.index


class TestSnapshotChunkValidation:
    def _write_chunk(self, path: Path, **overrides):
        doc = _docs()[0].to_dict()
        doc["chunks"][0].update(overrides)
        path.write_text(json.dumps({"version": SNAPSHOT_VERSION, "documents": [doc]}), encoding="utf-8")

    @pytest.mark.parametrize("start,end", [(5, 5), (10, 3), (-1, 19)])
    def test_impossible_offsets_reject_snapshot(self, tmp_path: Path, start, end):
        path = tmp_path / "snap.json"
        self._write_chunk(path, startOffset=start, endOffset=end)
        assert SnapshotStore(path).load() is None

    def test_range_must_match_content_length(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        self._write_chunk(path, startOffset=0, endOffset=99)
        assert SnapshotStore(path).load() is None

    def test_valid_offsets_load(self, tmp_path: Path):
        path = tmp_path / "snap.json"
        self._write_chunk(path, startOffset=3, endOffset=23)
        snapshot = SnapshotStore(path).load()
        assert snapshot.documents[0].chunks[0].start_offset == 3


class TestSnapshotDelete:
    def test_delete_existing(self, tmp_path: Path):
        store = SnapshotStore(tmp_path / "snap.json")
        store.save([], InvertedIndex(), None)
        assert store.delete()
        assert not store.path.exists()

    def test_delete_missing_is_fine(self, tmp_path: Path):
        assert SnapshotStore(tmp_path / "absent.json").delete()
