"""Tests for the ordered, path-keyed document store."""
from codebase_rag.rag.models import Chunk, Document
from codebase_rag.rag.store import DocumentStore


def _doc(path: str, text: str = "text") -> Document:
    return Document(
        id="feedf00d",
        path=path,
        filename=path.rsplit("/", 1)[-1],
        extension="",
        preview_content=text,
        chunks=[Chunk(id="feedf00d-0", content=text, start_offset=0, end_offset=len(text))],
        indexed_at="",
    )


class TestDocumentStore:
    def test_upsert_appends_new_paths(self):
        store = DocumentStore()
        assert store.upsert(_doc("/p/a")) is False
        assert store.upsert(_doc("/p/b")) is False
        assert [d.path for d in store.documents] == ["/p/a", "/p/b"]
        assert store.position_of("/p/b") == 1
        assert "/p/a" in store
        assert "/p/c" not in store
        assert store.position_of("/p/c") is None

    def test_upsert_replaces_in_place(self):
        store = DocumentStore([_doc("/p/a"), _doc("/p/b")])
        assert store.upsert(_doc("/p/a", "new text")) is True
        assert len(store) == 2
        assert store.documents[0].preview_content == "new text"
        assert store.position_of("/p/a") == 0

    def test_copy_is_independent(self):
        store = DocumentStore([_doc("/p/a")])
        clone = store.copy()
        clone.upsert(_doc("/p/b"))
        assert len(store) == 1
        assert "/p/b" not in store
        assert len(clone) == 2

    def test_total_chunks(self):
        store = DocumentStore([_doc("/p/a"), _doc("/p/b")])
        assert store.total_chunks == 2
