"""
Incremental Scanner - reads only the part of a log file written since the last pass

Handles:
- Seeking to a stored byte offset
- Byte-accurate offset tracking (line terminators included)
- Search/ignore filtering of the new lines
- Missing files (reported as a skipped scan, not an error)
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from logalert.errors import StorageIOError
from logalert.log_analysis.term_matcher import TermMatcher


@dataclass
class ScanResult:
    """Matches found in one scan and the offset the next scan should start at"""
    matches: List[str] = field(default_factory=list)
    start_offset: int = 0
    end_offset: int = 0

    @property
    def skipped(self) -> bool:
        """Nothing consumed and nothing found: the target is skipped this cycle."""
        return not self.matches and self.end_offset == 0


def file_size(path) -> int:
    """
    Current size of ``path``; 0 when it does not exist.

    Raises:
        StorageIOError: the path exists but cannot be stat'ed
    """
    try:
        return os.stat(path).st_size
    except (FileNotFoundError, NotADirectoryError):
        return 0
    except OSError as e:
        raise StorageIOError(f"Could not stat {path}: {e}") from e


def effective_offset(current_size: int, stored_offset: int) -> int:
    """
    Offset to start scanning from.

    A file smaller than the stored offset was truncated or rotated, so it is
    read again from the beginning.
    """
    if stored_offset < 0 or current_size < stored_offset:
        return 0
    return stored_offset


class IncrementalScanner:

    def __init__(self, matcher: Optional[TermMatcher] = None, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.matcher = matcher or TermMatcher(logger=self.logger)

    def scan(
        self,
        path,
        search_terms: Sequence[str],
        ignore_terms: Sequence[str],
        start_offset: int = 0,
    ) -> ScanResult:
        """
        Read ``path`` from ``start_offset`` to EOF and collect matching lines.

        Args:
            path: Log file to read
            search_terms: A line is kept if it matches any of these
            ignore_terms: Kept lines matching any of these are dropped
            start_offset: Byte offset to seek to; the caller resets it on truncation

        Returns:
            ScanResult with the filtered matches and the new end offset

        Raises:
            StorageIOError: the file exists but could not be read
        """
        file_path = Path(path).absolute()
        self.logger.info(f"Reading {file_path} for matches.")

        if not os.path.exists(file_path):
            self.logger.warning(f"Log file not found: {file_path}")
            return ScanResult()

        end_offset = start_offset
        matched: List[str] = []
        try:
            with open(file_path, "rb") as f:
                f.seek(start_offset)
                for raw in f:
                    end_offset += len(raw)
                    line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                    if self.matcher.matches(line, search_terms):
                        matched.append(line)
        except OSError as e:
            raise StorageIOError(f"Could not read {file_path}: {e}") from e

        return ScanResult(
            matches=self.matcher.filter_ignored(matched, ignore_terms),
            start_offset=start_offset,
            end_offset=end_offset,
        )
