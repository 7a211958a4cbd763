"""Tests for the JSON file and in-memory key-value stores."""

import json
from pathlib import Path

from studyhive.core.store import JsonFileStore, MemoryStore


class TestJsonFileStore:
    """JsonFileStore keeps one JSON file per key."""

    def test_set_writes_json_file(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.set("timer_today", {"date": "2026-10-16", "focus_minutes": 50})

        written = json.loads((tmp_path / "timer_today.json").read_text())
        assert written == {"date": "2026-10-16", "focus_minutes": 50}

    def test_get_reads_back_value(self, tmp_path: Path) -> None:
        (tmp_path / "timer_settings.json").write_text(json.dumps({"focus_duration": 30}))
        store = JsonFileStore(tmp_path)
        assert store.get("timer_settings") == {"focus_duration": 30}

    def test_missing_key_is_none(self, tmp_path: Path) -> None:
        assert JsonFileStore(tmp_path).get("timer_stats") is None

    def test_corrupt_entry_is_none(self, tmp_path: Path) -> None:
        (tmp_path / "timer_stats.json").write_text("{not json")
        assert JsonFileStore(tmp_path).get("timer_stats") is None

    def test_creates_missing_directory(self, tmp_path: Path) -> None:
        directory = tmp_path / "nested" / "config" / "dir"
        assert not directory.exists()

        JsonFileStore(directory).set("timer_settings", {})

        assert (directory / "timer_settings.json").exists()

    def test_delete_removes_entry(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        store.set("timer_stats", {"sessions_completed": 1})

        store.delete("timer_stats")

        assert store.get("timer_stats") is None
        assert not (tmp_path / "timer_stats.json").exists()

    def test_delete_missing_key_is_harmless(self, tmp_path: Path) -> None:
        JsonFileStore(tmp_path).delete("timer_stats")

    def test_default_directory(self) -> None:
        """When no directory is given, defaults to ~/.config/studyhive/."""
        assert JsonFileStore().directory == Path.home() / ".config" / "studyhive"


class TestMemoryStore:
    """MemoryStore mirrors JsonFileStore without touching disk."""

    def test_initial_values_are_readable(self) -> None:
        store = MemoryStore({"timer_today": {"date": "2026-10-16", "focus_minutes": 5}})
        assert store.get("timer_today") == {"date": "2026-10-16", "focus_minutes": 5}

    def test_returned_values_are_copies(self) -> None:
        store = MemoryStore()
        value = {"completed_tasks": []}
        store.set("timer_stats", value)
        value["completed_tasks"].append("changed")

        store.get("timer_stats")["completed_tasks"].append("changed again")

        assert store.get("timer_stats") == {"completed_tasks": []}

    def test_delete(self) -> None:
        store = MemoryStore({"timer_stats": {}})
        store.delete("timer_stats")
        store.delete("timer_stats")
        assert store.get("timer_stats") is None
