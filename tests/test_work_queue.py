"""Unit tests for the SQLite work queue."""

import json

import pytest

from harvester.exceptions import InitializationError
from harvester.work_queue import WorkQueueStore, read_seed_file


class TestWorkQueueStore:
    """Tests for load/save/remove_one."""

    def test_load_empty_when_nothing_stored(self, queue: WorkQueueStore) -> None:
        assert queue.load() == []
        assert queue.pending_count() == 0

    def test_save_preserves_order(self, queue: WorkQueueStore) -> None:
        queue.save(["https://x/c", "https://x/a", "https://x/b"])
        assert queue.load() == ["https://x/c", "https://x/a", "https://x/b"]

    def test_save_replaces_previous_queue(self, queue: WorkQueueStore) -> None:
        queue.save(["https://x/a", "https://x/b"])
        queue.save(["https://x/z"])
        assert queue.load() == ["https://x/z"]

    def test_survives_reopen(self, config) -> None:
        WorkQueueStore(config.queue_db).save(["https://x/a", "https://x/b"])
        assert WorkQueueStore(config.queue_db).load() == ["https://x/a", "https://x/b"]

    def test_remove_one_drops_only_that_url(self, queue: WorkQueueStore) -> None:
        queue.save(["https://x/a", "https://x/b", "https://x/c"])
        assert queue.remove_one("https://x/b") == 1
        assert queue.load() == ["https://x/a", "https://x/c"]

    def test_remove_one_drops_duplicates(self, queue: WorkQueueStore) -> None:
        queue.save(["https://x/a", "https://x/b", "https://x/a"])
        assert queue.remove_one("https://x/a") == 2
        assert queue.load() == ["https://x/b"]

    def test_remove_one_is_idempotent(self, queue: WorkQueueStore) -> None:
        queue.save(["https://x/a", "https://x/b"])
        queue.remove_one("https://x/a")
        assert queue.remove_one("https://x/a") == 0
        assert queue.remove_one("https://x/a") == 0
        assert queue.load() == ["https://x/b"]

    def test_clear(self, queue: WorkQueueStore) -> None:
        queue.save(["https://x/a"])
        queue.clear()
        assert queue.load() == []


class TestSeeding:
    """Tests for seeding from the static JSON source."""

    def test_seed_strips_and_drops_blank_entries(self, queue, write_seed, config) -> None:
        write_seed(["https://x/a", "  ", "", " https://x/b ", None])
        assert queue.seed(config.seed_file) == ["https://x/a", "https://x/b"]
        assert queue.load() == ["https://x/a", "https://x/b"]

    def test_ensure_seeded_seeds_empty_queue(self, queue, write_seed, config) -> None:
        write_seed(["https://x/a"])
        items, resumed = queue.ensure_seeded(config.seed_file)
        assert items == ["https://x/a"]
        assert resumed is False

    def test_ensure_seeded_resumes_stored_queue(self, queue, write_seed, config) -> None:
        write_seed(["https://x/a", "https://x/b"])
        queue.save(["https://x/b"])
        items, resumed = queue.ensure_seeded(config.seed_file)
        assert items == ["https://x/b"]
        assert resumed is True

    def test_missing_seed_file_is_fatal(self, queue, config) -> None:
        with pytest.raises(InitializationError, match="not found"):
            queue.ensure_seeded(config.seed_file)
        assert queue.load() == []

    def test_invalid_json_is_fatal(self, queue, config, tmp_path) -> None:
        (tmp_path / "chunk.json").write_text('["https://x/a", ', encoding="utf-8")
        with pytest.raises(InitializationError, match="not valid JSON"):
            queue.seed(config.seed_file)
        assert queue.load() == []

    def test_non_array_is_fatal(self, tmp_path) -> None:
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"urls": ["https://x/a"]}), encoding="utf-8")
        with pytest.raises(InitializationError, match="JSON array"):
            read_seed_file(str(path))

    def test_non_string_entry_is_fatal(self, queue, write_seed, config) -> None:
        write_seed(["https://x/a", 42])
        with pytest.raises(InitializationError, match="entry 1"):
            queue.seed(config.seed_file)
        assert queue.load() == []
