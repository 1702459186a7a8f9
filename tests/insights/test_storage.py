"""Tests for blob stores."""

import pytest

from insights.storage import MemoryBlobStore, SQLiteBlobStore


@pytest.fixture(params=["memory", "sqlite"])
def blob_store(request, tmp_path):
    if request.param == "memory":
        return MemoryBlobStore()
    return SQLiteBlobStore(tmp_path / "nested" / "insights.db")


class TestBlobStore:
    def test_missing_key(self, blob_store):
        assert blob_store.get("ai_insights") is None

    def test_set_and_overwrite(self, blob_store):
        blob_store.set("ai_insights", b"[]")
        blob_store.set("ai_insights", b'[{"id": "x"}]')
        assert blob_store.get("ai_insights") == b'[{"id": "x"}]'

    def test_keys_independent(self, blob_store):
        blob_store.set("ai_insights", b"a")
        blob_store.set("insights_last_sync", b"b")
        blob_store.delete("ai_insights")
        assert blob_store.get("ai_insights") is None
        assert blob_store.get("insights_last_sync") == b"b"


def test_sqlite_survives_reopen(tmp_path):
    path = tmp_path / "insights.db"
    SQLiteBlobStore(path).set("ai_insights", b"persisted")
    assert SQLiteBlobStore(path).get("ai_insights") == b"persisted"
