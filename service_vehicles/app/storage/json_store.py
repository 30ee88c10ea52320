"""
JSON file store with atomic replace and backup recovery.
"""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Optional, Union

from shared.logging import get_logger

from ..errors import CorruptDataError, StorageReadError, StorageWriteError
from .locks import ReadWriteLock

BACKUP_SUFFIX = ".bak"
TEMP_SUFFIX = ".tmp"


class JsonFileStore:
    """Persists one JSON document per file name under a data directory.

    ``save`` never leaves a partially written file at the target path: the new
    content goes to ``<name>.tmp`` and is moved into place with ``os.replace``.
    The previous content is kept as ``<name>.bak`` and ``load`` falls back to
    it when the main file cannot be decoded.

    All operations on one store share ``lock``. The lock is process-local and
    does not protect against other processes touching the same files.
    """

    def __init__(self, data_dir: Union[str, Path], lock: Optional[ReadWriteLock] = None):
        self.data_dir = Path(data_dir)
        self.lock = lock or ReadWriteLock()
        self.logger = get_logger("vehicles.storage.json")

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageWriteError(
                "Failed to create data directory",
                {"data_dir": str(self.data_dir), "error": str(e)}
            ) from e

    def path_for(self, name: str) -> Path:
        return self.data_dir / name

    def save(self, name: str, document: Any) -> None:
        """Atomically replace ``name`` with the JSON encoding of ``document``."""
        path = self.path_for(name)
        backup_path = path.with_name(path.name + BACKUP_SUFFIX)
        temp_path = path.with_name(path.name + TEMP_SUFFIX)

        try:
            payload = json.dumps(document, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            self.logger.error("Failed to serialise document", file=name, error=str(e))
            raise StorageWriteError("Failed to serialise document", {"file": name, "error": str(e)}) from e

        with self.lock.write_locked():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self.logger.error("Failed to create directory", file=name, error=str(e))
                raise StorageWriteError("Failed to create directory", {"file": name, "error": str(e)}) from e

            if path.exists():
                try:
                    shutil.copy2(path, backup_path)
                    self.logger.debug("Backup written", file=name, backup=str(backup_path))
                except OSError as e:
                    self.logger.warning("Failed to write backup, saving anyway", file=name, error=str(e))

            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                self._discard(temp_path)
                self.logger.error("Failed to write temporary file", file=name, error=str(e))
                raise StorageWriteError("Failed to write temporary file", {"file": name, "error": str(e)}) from e

            try:
                os.replace(temp_path, path)
            except OSError as e:
                self._discard(temp_path)
                self.logger.error("Failed to move temporary file into place", file=name, error=str(e))
                raise StorageWriteError("Failed to replace file", {"file": name, "error": str(e)}) from e

        self.logger.info("Saved document", file=name, bytes=len(payload))

    def load(self, name: str) -> Optional[Any]:
        """Return the decoded document, or ``None`` if the file is absent or empty."""
        path = self.path_for(name)

        with self.lock.read_locked():
            if not path.exists():
                self.logger.warning("File does not exist", file=name)
                return None

            try:
                raw = path.read_bytes()
            except OSError as e:
                self.logger.error("Failed to read file", file=name, error=str(e))
                raise StorageReadError("Failed to read file", {"file": name, "error": str(e)}) from e

            if not raw.strip():
                self.logger.warning("File is empty", file=name)
                return None

            try:
                document = json.loads(raw)
            except ValueError as e:
                self.logger.error("Failed to decode file, trying backup", file=name, error=str(e))
                document = self._load_backup(path)
                if document is None:
                    raise CorruptDataError(
                        "Stored data is corrupt and no usable backup exists",
                        {"file": name, "error": str(e)}
                    ) from e
                self.logger.warning("Recovered document from backup", file=name)
                return document

        self.logger.debug("Loaded document", file=name)
        return document

    def exists(self, name: str) -> bool:
        with self.lock.read_locked():
            return self.path_for(name).exists()

    def delete(self, name: str) -> None:
        """Remove ``name``. A missing file is not an error."""
        path = self.path_for(name)

        with self.lock.write_locked():
            if not path.exists():
                self.logger.warning("Attempted to delete missing file", file=name)
                return
            try:
                path.unlink()
            except OSError as e:
                self.logger.error("Failed to delete file", file=name, error=str(e))
                raise StorageWriteError("Failed to delete file", {"file": name, "error": str(e)}) from e

        self.logger.info("Deleted file", file=name)

    def _load_backup(self, path: Path) -> Optional[Any]:
        backup_path = path.with_name(path.name + BACKUP_SUFFIX)
        try:
            raw = backup_path.read_bytes()
        except OSError:
            return None
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError:
            self.logger.error("Backup is corrupt as well", backup=str(backup_path))
            return None

    def _discard(self, temp_path: Path) -> None:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning("Failed to remove temporary file", temp=str(temp_path), error=str(e))
