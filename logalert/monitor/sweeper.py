import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from logalert.storage.offset_store import OffsetStore

RETENTION = timedelta(days=7)


class RetentionSweeper:
    """Deletes offset records that have not been touched for a week."""

    def __init__(
        self,
        offset_store: OffsetStore,
        retention: timedelta = RETENTION,
        logger: Optional[logging.Logger] = None,
    ):
        self.offset_store = offset_store
        self.retention = retention
        self.logger = logger or logging.getLogger(__name__)

    def sweep(self, now: Optional[datetime] = None) -> List[Path]:
        cutoff = ((now or datetime.now()) - self.retention).timestamp()
        removed = []
        for record in self.offset_store.records():
            try:
                mtime = record.stat().st_mtime
                if mtime >= cutoff:
                    continue
                record.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                self.logger.error(f"ERROR: could not remove {record}: {e}")
                continue

            removed.append(record)
            self.logger.info(
                f"Removed file {record.name} from {self.offset_store.directory.name}. "
                f"It was older than a week, last modTime was: {datetime.fromtimestamp(mtime)}"
            )
        self.remove_temp_files()
        return removed

    def remove_temp_files(self) -> List[Path]:
        """Delete temp files an interrupted offset write left behind."""
        removed = []
        for temp in self.offset_store.temp_files():
            try:
                temp.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                self.logger.error(f"ERROR: could not remove {temp}: {e}")
                continue
            removed.append(temp)
            self.logger.info(f"Removed leftover temp file {temp.name}")
        return removed
