import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from logalert.errors import StorageIOError

OFFSET_DIR_NAME = "FilePlaceHolders"
TEMP_PREFIX = "."
TEMP_SUFFIX = ".tmp"


class OffsetStore:
    """
    Durable mapping from log identity to the last consumed byte offset.

    Each identity is stored as its own file holding the decimal offset.
    Writes go to a temp file in the same directory and are moved into place
    with ``os.replace``, so a record is either the old value or the new one.
    """

    def __init__(self, storage_root, logger: Optional[logging.Logger] = None):
        self.directory = Path(storage_root) / OFFSET_DIR_NAME
        self.logger = logger or logging.getLogger(__name__)

    def _record_path(self, identity: str) -> Path:
        return self.directory / identity

    def get(self, identity: str) -> int:
        path = self._record_path(identity)
        try:
            text = path.read_text(encoding="utf-8", errors="replace").strip()
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise StorageIOError(f"Could not read offset record {path}: {e}") from e

        try:
            return int(text)
        except ValueError:
            self.logger.error(f"ERROR: offset record {path} is corrupt ({text!r}), starting from 0")
            return 0

    def put(self, identity: str, offset: int) -> None:
        path = self._record_path(identity)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f"{TEMP_PREFIX}{identity}.", suffix=TEMP_SUFFIX)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(str(int(offset)))
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StorageIOError(f"Could not write offset record {path}: {e}") from e

    @staticmethod
    def is_temp_file(path: Path) -> bool:
        return path.name.startswith(TEMP_PREFIX) and path.name.endswith(TEMP_SUFFIX)

    def _files(self) -> List[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(p for p in self.directory.iterdir() if p.is_file())

    def records(self) -> List[Path]:
        """All offset record files, temp files excluded."""
        return [p for p in self._files() if not self.is_temp_file(p)]

    def temp_files(self) -> List[Path]:
        """Temp files left behind by an interrupted ``put``."""
        return [p for p in self._files() if self.is_temp_file(p)]
