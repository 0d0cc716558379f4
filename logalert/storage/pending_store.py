import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from logalert.errors import StorageIOError

PENDING_DIR_NAME = "matches"
LINE_TERMINATOR = "\r\n"


class PendingMatchStore:
    """
    Holding area for matches that could not be delivered.

    One append-only text file per log identity, one match per CRLF-terminated
    row. Lines are only removed by ``clear`` after a successful send.
    """

    def __init__(self, storage_root, logger: Optional[logging.Logger] = None):
        self.directory = Path(storage_root) / PENDING_DIR_NAME
        self.logger = logger or logging.getLogger(__name__)

    def _record_path(self, identity: str) -> Path:
        return self.directory / identity

    def append(self, identity: str, lines: Iterable[str]) -> int:
        """
        Append ``lines`` to the backlog for ``identity``.

        Returns:
            Number of lines written
        """
        lines = list(lines)
        if not lines:
            return 0

        path = self._record_path(identity)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8", newline="") as f:
                for line in lines:
                    f.write(line + LINE_TERMINATOR)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageIOError(f"Could not append to pending matches {path}: {e}") from e

        self.logger.info(f"Wrote {len(lines)} matches to {path}")
        return len(lines)

    def read_all(self, identity: str) -> List[str]:
        path = self._record_path(identity)
        try:
            # Undecodable bytes are replaced the same way the scanner decodes log lines
            with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
                data = f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageIOError(f"Could not read pending matches {path}: {e}") from e

        return [line for line in data.split(LINE_TERMINATOR) if line]

    def clear(self, identity: str) -> None:
        path = self._record_path(identity)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageIOError(f"Could not clear pending matches {path}: {e}") from e
