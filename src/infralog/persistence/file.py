"""
File-backed state store.

Snapshots are written as indented JSON. Saves go to a temporary file in the
same directory which is then renamed over the target, so readers only ever
see a complete file.
"""

import json
import os
import tempfile
import threading
from typing import Optional

from ..errors import ConfigError, ParseError, PersistError
from ..tfstate import Snapshot
from ..utils import setup_logging
from .store import Store

logger = setup_logging()


class FileStore(Store):
    """Persists the last seen snapshot to a local JSON file."""

    def __init__(self, path: str) -> None:
        """
        Args:
            path: Target file. Its parent directory is created if missing.

        Raises:
            ConfigError: If the path is empty or the directory cannot be created
        """
        if not path:
            raise ConfigError("persistence path cannot be empty")

        directory = os.path.dirname(os.path.abspath(path))
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"failed to create persistence directory: {e}") from e

        self.path = path
        self._directory = directory
        self._lock = threading.Lock()

    def load(self) -> Optional[Snapshot]:
        """
        Reads the persisted snapshot from disk.

        Returns:
            The stored Snapshot, or None if the file does not exist yet

        Raises:
            PersistError: If the file cannot be read or is malformed
        """
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    document = json.load(f)
            except FileNotFoundError:
                return None
            except OSError as e:
                raise PersistError(f"failed to read persisted state: {e}") from e
            except json.JSONDecodeError as e:
                raise PersistError(f"failed to parse persisted state: {e}") from e

            try:
                return Snapshot.from_dict(document)
            except ParseError as e:
                raise PersistError(f"failed to parse persisted state: {e}") from e

    def save(self, snapshot: Snapshot) -> None:
        """
        Writes the snapshot to disk atomically.

        Raises:
            PersistError: If the temporary file cannot be written or renamed
        """
        with self._lock:
            temp_path: Optional[str] = None
            try:
                data = json.dumps(snapshot.to_dict(), indent=2)
                fd, temp_path = tempfile.mkstemp(
                    prefix=os.path.basename(self.path) + ".",
                    suffix=".tmp",
                    dir=self._directory,
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_path, self.path)
            except (OSError, TypeError, ValueError) as e:
                if temp_path is not None:
                    try:
                        os.remove(temp_path)
                    except OSError:
                        pass
                raise PersistError(f"failed to write state file: {e}") from e

            logger.debug(f"Persisted state serial {snapshot.serial} to {self.path}")
