import json
from pathlib import Path

import pytest

from stores import JSONChunkStore, create_chunk_store


class TestJSONChunkStore:
    def test_add_document_assigns_ids_and_order(self) -> None:
        store = JSONChunkStore()

        document_id = store.add_document(
            "guide.md",
            ["first part", "second part"],
            [[1.0, 0.0], [0.0, 1.0]],
            metadata={"file_path": "/docs/guide.md"},
        )

        chunks = store.get_all_chunks()
        assert [c.id for c in chunks] == [f"{document_id}:0", f"{document_id}:1"]
        assert [c.index for c in chunks] == [0, 1]
        assert all(c.document_id == document_id for c in chunks)
        assert all(c.source == "guide.md" for c in chunks)
        assert chunks[0].metadata == {"file_path": "/docs/guide.md"}
        assert store.count == 2

    def test_mismatched_lengths_store_nothing(self) -> None:
        store = JSONChunkStore()

        with pytest.raises(ValueError):
            store.add_document("guide.md", ["a", "b"], [[1.0, 0.0]])

        assert store.count == 0

    def test_same_source_replaces_previous_chunks(self) -> None:
        store = JSONChunkStore()
        store.add_document("guide.md", ["old text"], [[1.0, 0.0]])
        new_id = store.add_document("guide.md", ["new text"], [[0.0, 1.0]])

        chunks = store.get_all_chunks()
        assert [c.content for c in chunks] == ["new text"]
        assert chunks[0].document_id == new_id

    def test_snapshot_is_independent_of_later_writes(self) -> None:
        store = JSONChunkStore()
        store.add_document("a.md", ["alpha"], [[1.0, 0.0]])

        snapshot = store.get_all_chunks()
        store.add_document("b.md", ["beta"], [[0.0, 1.0]])

        assert len(snapshot) == 1
        assert store.count == 2

    def test_delete_document(self) -> None:
        store = JSONChunkStore()
        keep_id = store.add_document("a.md", ["alpha"], [[1.0, 0.0]])
        drop_id = store.add_document("b.md", ["beta", "gamma"], [[0.0, 1.0]] * 2)

        assert store.delete_document(drop_id) is True
        assert store.delete_document(drop_id) is False
        assert {c.document_id for c in store.get_all_chunks()} == {keep_id}

    def test_delete_all(self) -> None:
        store = JSONChunkStore()
        store.add_document("a.md", ["alpha"], [[1.0, 0.0]])

        store.delete_all()

        assert store.count == 0
        assert store.get_all_chunks() == []

    def test_stats_reports_dimension_histogram(self) -> None:
        store = JSONChunkStore()
        store.add_document("a.md", ["alpha", "beta"], [[1.0, 0.0]] * 2)
        store.add_document("b.md", ["gamma"], [[1.0, 0.0, 0.0]])

        stats = store.stats()

        assert stats.total_documents == 2
        assert stats.total_chunks == 3
        assert stats.dimensions == {2: 2, 3: 1}

    def test_persists_and_reloads(self, temp_storage_dir: Path) -> None:
        path = temp_storage_dir / "chunks.json"
        store = JSONChunkStore(path)
        document_id = store.add_document(
            "guide.md", ["persisted text"], [[0.6, 0.8]], metadata={"page": 3}
        )

        data = json.loads(path.read_text())
        assert len(data["chunks"]) == 1

        reloaded = JSONChunkStore(path)
        chunks = reloaded.get_all_chunks()
        assert len(chunks) == 1
        assert chunks[0].document_id == document_id
        assert chunks[0].embedding == [0.6, 0.8]
        assert chunks[0].metadata == {"page": 3}

    def test_delete_all_persists(self, temp_storage_dir: Path) -> None:
        path = temp_storage_dir / "chunks.json"
        store = JSONChunkStore(path)
        store.add_document("guide.md", ["text"], [[1.0, 0.0]])

        store.delete_all()

        assert JSONChunkStore(path).count == 0


class TestCreateChunkStore:
    def test_json_provider(self, temp_storage_dir: Path) -> None:
        store = create_chunk_store("json", path=temp_storage_dir / "chunks.json")
        assert isinstance(store, JSONChunkStore)

    def test_memory_provider(self) -> None:
        store = create_chunk_store("memory")
        store.add_document("a.md", ["alpha"], [[1.0, 0.0]])
        assert store.count == 1

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown chunk store provider"):
            create_chunk_store("postgres")
