"""Tests for the seen-article stores."""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from ai_news_agent.config import DEFAULT_SEEN_PATH
from ai_news_agent.exceptions import PersistenceError
from ai_news_agent.persistence import (
    JsonSeenStore,
    MemorySeenStore,
    create_seen_store,
    get_seen_backend_type,
)


@pytest.fixture
def temp_storage_dir():
    """Create a temporary directory for storage."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def json_store(temp_storage_dir):
    return JsonSeenStore(temp_storage_dir / "seen-articles.json")


class TestJsonSeenStore:
    """Tests for JsonSeenStore."""

    def test_missing_file_is_empty(self, json_store):
        assert json_store.load() == set()
        assert len(json_store) == 0

    def test_save_and_load(self, json_store):
        urls = ["https://b.example.com/2", "https://a.example.com/1", "https://c.example.com/3"]
        assert json_store.add_many(urls) == 3
        json_store.save()

        reloaded = JsonSeenStore(json_store.path)
        assert reloaded.load() == set(urls)
        assert reloaded.urls == urls

    def test_file_is_indented_json_array(self, json_store):
        json_store.add_many(["https://a.example.com/1"])
        json_store.save()

        text = json_store.path.read_text(encoding="utf-8")
        assert text == '[\n  "https://a.example.com/1"\n]'

    def test_add_many_counts_new_urls_only(self, json_store):
        json_store.add_many(["https://a.example.com/1"])
        assert json_store.add_many(["https://a.example.com/1", "https://b.example.com/2", ""]) == 1
        assert json_store.urls == ["https://a.example.com/1", "https://b.example.com/2"]

    def test_contains(self, json_store):
        json_store.add_many(["https://a.example.com/1"])
        assert "https://a.example.com/1" in json_store
        assert json_store.contains("https://a.example.com/1")
        assert not json_store.contains("https://b.example.com/2")

    def test_corrupt_file_is_empty(self, json_store):
        json_store.path.write_text("{not json", encoding="utf-8")
        assert json_store.load() == set()

    def test_non_list_is_empty(self, json_store):
        json_store.path.write_text(json.dumps({"urls": ["https://a.example.com/1"]}), encoding="utf-8")
        assert json_store.load() == set()

    def test_non_string_entries_are_ignored(self, json_store):
        json_store.path.write_text(json.dumps(["https://a.example.com/1", 42, None]), encoding="utf-8")
        assert json_store.load() == {"https://a.example.com/1"}

    def test_load_replaces_memory(self, json_store):
        json_store.add_many(["https://unsaved.example.com/1"])
        assert json_store.load() == set()
        assert len(json_store) == 0

    def test_save_creates_parent_directory(self, temp_storage_dir):
        store = JsonSeenStore(temp_storage_dir / "nested" / "seen.json")
        store.add_many(["https://a.example.com/1"])
        store.save()
        assert store.path.exists()

    def test_save_failure_raises(self, temp_storage_dir):
        # The target path is a directory, so the final rename fails
        target = temp_storage_dir / "taken"
        target.mkdir()
        (target / "child").write_text("x", encoding="utf-8")
        store = JsonSeenStore(target)
        store.add_many(["https://a.example.com/1"])

        with pytest.raises(PersistenceError):
            store.save()


class TestMemorySeenStore:
    """Tests for MemorySeenStore."""

    def test_initial_urls(self):
        store = MemorySeenStore(["https://a.example.com/1"])
        assert store.load() == {"https://a.example.com/1"}

    def test_save_only_counts(self):
        store = MemorySeenStore()
        store.add_many(["https://a.example.com/1"])
        store.save()
        store.save()
        assert store.save_count == 2
        assert store.load() == {"https://a.example.com/1"}


class TestSeenStoreFactory:
    """Tests for the seen store factory."""

    def test_default_backend_is_json(self, monkeypatch):
        monkeypatch.delenv("AI_NEWS_SEEN_BACKEND", raising=False)
        assert get_seen_backend_type() == "json"

    def test_backend_from_env(self, monkeypatch):
        monkeypatch.setenv("AI_NEWS_SEEN_BACKEND", "Memory")
        assert get_seen_backend_type() == "memory"
        assert isinstance(create_seen_store(), MemorySeenStore)

    def test_json_default_path(self, monkeypatch):
        monkeypatch.delenv("AI_NEWS_SEEN_PATH", raising=False)
        store = create_seen_store("json")
        assert isinstance(store, JsonSeenStore)
        assert store.path == Path(DEFAULT_SEEN_PATH)

    def test_json_path_from_env(self, monkeypatch, temp_storage_dir):
        path = temp_storage_dir / "env-seen.json"
        monkeypatch.setenv("AI_NEWS_SEEN_PATH", str(path))
        assert create_seen_store("json").path == path

    def test_explicit_path_wins(self, monkeypatch, temp_storage_dir):
        monkeypatch.setenv("AI_NEWS_SEEN_PATH", "ignored.json")
        path = temp_storage_dir / "explicit.json"
        assert create_seen_store("json", str(path)).path == path

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown seen store backend"):
            create_seen_store("postgres")
