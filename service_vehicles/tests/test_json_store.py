"""
Unit tests for the JSON file store.
"""

import json
import os
import threading
import time
from unittest.mock import patch

import pytest

from service_vehicles.app.errors import CorruptDataError, StorageWriteError
from service_vehicles.app.storage import JsonFileStore, ReadWriteLock


class TestJsonFileStore:
    """Test cases for JsonFileStore."""

    def test_creates_data_directory(self, tmp_path):
        """Test the data directory is created on construction."""
        data_dir = tmp_path / "nested" / "data"
        JsonFileStore(data_dir)
        assert data_dir.is_dir()

    def test_load_missing_file_returns_none(self, store):
        """Test absence of the file is not an error."""
        assert store.load("cars.json") is None

    def test_load_empty_file_returns_none(self, store):
        """Test an empty file reads as no document."""
        store.path_for("cars.json").write_text("", encoding="utf-8")
        assert store.load("cars.json") is None

    def test_save_then_load(self, store):
        """Test a saved document is read back unchanged."""
        document = [{"id": "a", "brand": "Toyota"}, {"id": "b", "brand": "Honda"}]
        store.save("cars.json", document)

        assert store.load("cars.json") == document
        assert store.exists("cars.json")
        assert not store.path_for("cars.json.tmp").exists()

    def test_save_writes_indented_utf8(self, store):
        """Test the on-disk encoding is readable JSON."""
        store.save("cars.json", [{"remarks": "garé à Paris"}])

        text = store.path_for("cars.json").read_text(encoding="utf-8")
        assert "garé à Paris" in text
        assert "\n  " in text

    def test_save_keeps_previous_version_as_backup(self, store):
        """Test the previous content is kept in the .bak file."""
        store.save("cars.json", [{"id": "first"}])
        store.save("cars.json", [{"id": "second"}])

        backup = json.loads(store.path_for("cars.json.bak").read_text(encoding="utf-8"))
        assert backup == [{"id": "first"}]
        assert store.load("cars.json") == [{"id": "second"}]

    def test_first_save_has_no_backup(self, store):
        """Test no backup exists before there is anything to back up."""
        store.save("cars.json", [])
        assert not store.path_for("cars.json.bak").exists()

    def test_save_into_subdirectory(self, store):
        """Test parent directories of the target are created."""
        store.save("fleet/cars.json", [{"id": "a"}])
        assert store.load("fleet/cars.json") == [{"id": "a"}]

    def test_failed_replace_leaves_original_untouched(self, store):
        """Test a save interrupted before the final rename changes nothing."""
        store.save("cars.json", [{"id": "original"}])
        original_text = store.path_for("cars.json").read_text(encoding="utf-8")

        with patch("service_vehicles.app.storage.json_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageWriteError):
                store.save("cars.json", [{"id": "replacement"}])

        assert store.path_for("cars.json").read_text(encoding="utf-8") == original_text
        assert not store.path_for("cars.json.tmp").exists()
        assert store.load("cars.json") == [{"id": "original"}]

    def test_unserialisable_document_raises(self, store):
        """Test documents that cannot be encoded are rejected before touching disk."""
        with pytest.raises(StorageWriteError):
            store.save("cars.json", [{"when": object()}])

        assert not store.exists("cars.json")

    def test_recovers_from_backup_when_main_file_corrupt(self, store):
        """Test corrupt main file falls back to the backup transparently."""
        store.path_for("cars.json").write_text("{not json", encoding="utf-8")
        store.path_for("cars.json.bak").write_text(json.dumps([{"id": "backup"}]), encoding="utf-8")

        assert store.load("cars.json") == [{"id": "backup"}]

    def test_corrupt_without_backup_raises(self, store):
        """Test corrupt main file with no backup is a hard failure."""
        store.path_for("cars.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptDataError):
            store.load("cars.json")

    def test_corrupt_main_and_backup_raises(self, store):
        """Test corrupt main file and corrupt backup is a hard failure."""
        store.path_for("cars.json").write_text("[1, 2", encoding="utf-8")
        store.path_for("cars.json.bak").write_text("also broken", encoding="utf-8")

        with pytest.raises(CorruptDataError):
            store.load("cars.json")

    def test_delete(self, store):
        """Test deleting an existing file."""
        store.save("cars.json", [])
        store.delete("cars.json")
        assert not store.exists("cars.json")

    def test_delete_missing_file_is_not_an_error(self, store):
        """Test deleting a file that does not exist."""
        store.delete("missing.json")
        assert not store.exists("missing.json")

    def test_stores_do_not_share_locks(self, tmp_path):
        """Test each store owns its own lock."""
        first = JsonFileStore(tmp_path / "a")
        second = JsonFileStore(tmp_path / "b")
        assert first.lock is not second.lock

    def test_injected_lock_is_used(self, tmp_path):
        """Test a caller-supplied lock guards the store."""
        lock = ReadWriteLock()
        store = JsonFileStore(tmp_path, lock=lock)
        assert store.lock is lock

    def test_concurrent_saves_never_expose_partial_files(self, store):
        """Test readers always see a complete document while writers run."""
        errors = []
        documents = [[{"id": str(i), "payload": "x" * 2000}] * 20 for i in range(10)]
        store.save("cars.json", documents[0])

        def writer(doc):
            store.save("cars.json", doc)

        def reader():
            for _ in range(20):
                try:
                    loaded = store.load("cars.json")
                    assert loaded in documents
                except Exception as e:  # noqa: BLE001 - collected for the main thread
                    errors.append(e)

        threads = [threading.Thread(target=writer, args=(doc,)) for doc in documents]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert not store.path_for("cars.json.tmp").exists()

    def test_temp_file_sits_beside_target(self, store):
        """Test the temporary file is a sibling of the target."""
        seen = {}
        real_replace = os.replace

        def spy(src, dst):
            seen["src"], seen["dst"] = str(src), str(dst)
            return real_replace(src, dst)

        with patch("service_vehicles.app.storage.json_store.os.replace", side_effect=spy):
            store.save("cars.json", [])

        assert seen["src"] == str(store.path_for("cars.json.tmp"))
        assert seen["dst"] == str(store.path_for("cars.json"))


class TestReadWriteLock:
    """Test cases for ReadWriteLock."""

    def test_readers_share_the_lock(self):
        """Test several readers hold the lock at once."""
        lock = ReadWriteLock()
        inside = []
        barrier = threading.Barrier(3, timeout=2)

        def reader():
            with lock.read_locked():
                inside.append(1)
                barrier.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=3)

        assert len(inside) == 3

    def test_writer_excludes_readers(self):
        """Test a reader waits until the writer releases."""
        lock = ReadWriteLock()
        events = []

        lock.acquire_write()

        def reader():
            with lock.read_locked():
                events.append("read")

        thread = threading.Thread(target=reader)
        thread.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        thread.join(timeout=2)

        assert events == ["write-done", "read"]

    def test_writer_waits_for_readers(self):
        """Test a writer waits until active readers release."""
        lock = ReadWriteLock()
        events = []

        lock.acquire_read()

        def writer():
            with lock.write_locked():
                events.append("write")

        thread = threading.Thread(target=writer)
        thread.start()
        time.sleep(0.05)
        events.append("read-done")
        lock.release_read()
        thread.join(timeout=2)

        assert events == ["read-done", "write"]

