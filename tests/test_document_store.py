"""
Tests for the SQLite document store.

Covers:
- insert / get / find with selectors
- upsert by composite key
- delete / count / collections
- collection name validation
"""

import pytest

from lifeos.document_store import DocumentStore, DocumentStoreError


class TestDocuments:
    def test_insert_assigns_id(self, store):
        key = store.insert("tasks", {"title": "Write report"})
        assert store.get("tasks", key)["id"] == key

    def test_find_with_selector_keeps_order(self, store):
        store.insert("tasks", {"id": "1", "status": "active"})
        store.insert("tasks", {"id": "2", "status": "completed"})
        store.insert("tasks", {"id": "3", "status": "active"})

        assert [d["id"] for d in store.find("tasks", {"status": "active"})] == ["1", "3"]
        assert store.find_one("tasks", {"status": "missing"}) is None

    def test_upsert_by_composite_key(self, store):
        fields = ("signal_type", "domain")
        store.upsert("signal_weights", {"signal_type": "aging_email", "domain": "family", "v": 1}, fields)
        store.upsert("signal_weights", {"signal_type": "aging_email", "domain": "family", "v": 2}, fields)
        store.upsert("signal_weights", {"signal_type": "aging_email", "domain": "finance", "v": 3}, fields)

        assert store.count("signal_weights") == 2
        assert store.get("signal_weights", "aging_email::family")["v"] == 2

    def test_upsert_requires_key_fields(self, store):
        with pytest.raises(DocumentStoreError):
            store.upsert("tasks", {"title": "no id"})
        with pytest.raises(DocumentStoreError):
            store.upsert("tasks", {"id": "1"}, key_fields=())

    def test_delete_and_collections(self, store):
        store.insert("tasks", {"id": "1"})
        store.insert("emails", {"id": "e"})

        assert store.delete("tasks", "1") is True
        assert store.delete("tasks", "1") is False
        assert store.collections() == ["emails"]

    def test_isolated_collections(self, store):
        store.insert("tasks", {"id": "1"})
        assert store.get("emails", "1") is None

    @pytest.mark.parametrize("name", ["", "Tasks", "drop table", "1abc", None])
    def test_invalid_collection(self, store, name):
        with pytest.raises(DocumentStoreError):
            store.find(name)

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "db.sqlite"
        DocumentStore(path).insert("tasks", {"id": "1", "title": "x"})
        assert DocumentStore(path).get("tasks", "1")["title"] == "x"
