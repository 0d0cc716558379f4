import os
import errno
import tempfile
import shutil

import pytest
from unittest.mock import MagicMock, patch

from logalert.errors import StorageIOError
from logalert.log_analysis.scanner import (
    IncrementalScanner,
    ScanResult,
    effective_offset,
    file_size,
)


@pytest.fixture
def temp_dir_manager(request):
    """Fixture to manage temporary directories for tests."""
    temp_dir = tempfile.mkdtemp(prefix="scanner_test_")

    def cleanup_dir():
        if os.path.exists(temp_dir):
            shutil.rmtree(temp_dir)

    request.addfinalizer(cleanup_dir)
    return temp_dir


@pytest.fixture
def scanner():
    return IncrementalScanner(logger=MagicMock())


def write_log(directory, content: bytes, name="app.log"):
    path = os.path.join(directory, name)
    with open(path, "wb") as f:
        f.write(content)
    return path


CONTENT = b"ERROR one\nINFO two\nERROR: transient three\n"


class TestIncrementalScanner:

    def test_ignore_wins_over_search(self, scanner, temp_dir_manager):
        path = write_log(temp_dir_manager, CONTENT)
        result = scanner.scan(path, ["ERROR"], ["ERROR: transient"], 0)
        assert result.matches == ["ERROR one"]
        assert result.end_offset == len(CONTENT)
        assert not result.skipped

    def test_starts_reading_at_offset(self, scanner, temp_dir_manager):
        path = write_log(temp_dir_manager, CONTENT)
        start = len(b"ERROR one\n")
        result = scanner.scan(path, ["error"], [], start)
        assert result.matches == ["ERROR: transient three"]
        assert result.start_offset == start
        assert result.end_offset == len(CONTENT)

    def test_offset_counts_line_terminators(self, scanner, temp_dir_manager):
        content = b"ERROR a\r\nok\r\nERROR b"
        path = write_log(temp_dir_manager, content)
        result = scanner.scan(path, ["error"], [], 0)
        assert result.matches == ["ERROR a", "ERROR b"]
        assert result.end_offset == len(content)

    def test_non_utf8_bytes_are_counted(self, scanner, temp_dir_manager):
        content = b"ERROR \xff\xfe bad bytes\n"
        path = write_log(temp_dir_manager, content)
        result = scanner.scan(path, ["error"], [], 0)
        assert len(result.matches) == 1
        assert result.end_offset == len(content)

    def test_scan_is_idempotent(self, scanner, temp_dir_manager):
        path = write_log(temp_dir_manager, CONTENT)
        first = scanner.scan(path, ["error"], ["transient"], 0)
        second = scanner.scan(path, ["error"], ["transient"], 0)
        assert first == second

    def test_nothing_new_is_not_a_skip(self, scanner, temp_dir_manager):
        path = write_log(temp_dir_manager, CONTENT)
        result = scanner.scan(path, ["error"], [], len(CONTENT))
        assert result.matches == []
        assert result.end_offset == len(CONTENT)
        assert not result.skipped

    def test_missing_file_is_skipped(self, scanner, temp_dir_manager):
        result = scanner.scan(os.path.join(temp_dir_manager, "nope.log"), ["error"], [], 42)
        assert result == ScanResult()
        assert result.skipped
        scanner.logger.warning.assert_called_once()

    def test_empty_file_from_zero_is_skipped(self, scanner, temp_dir_manager):
        path = write_log(temp_dir_manager, b"")
        assert scanner.scan(path, ["error"], [], 0).skipped

    def test_unreadable_path_raises_storage_error(self, scanner, temp_dir_manager):
        # A directory exists but cannot be opened as a file
        with pytest.raises(StorageIOError):
            scanner.scan(temp_dir_manager, ["error"], [], 0)


class TestOffsetHelpers:

    def test_truncated_file_restarts_from_zero(self):
        assert effective_offset(200, 500) == 0

    def test_grown_file_keeps_offset(self):
        assert effective_offset(500, 200) == 200
        assert effective_offset(200, 200) == 200

    def test_negative_offset_is_never_used(self):
        assert effective_offset(100, -5) == 0

    def test_file_size_of_missing_file_is_zero(self, temp_dir_manager):
        assert file_size(os.path.join(temp_dir_manager, "missing.log")) == 0

    def test_file_size(self, temp_dir_manager):
        path = write_log(temp_dir_manager, CONTENT)
        assert file_size(path) == len(CONTENT)

    def test_file_size_under_a_regular_file_is_zero(self, temp_dir_manager):
        plain = write_log(temp_dir_manager, CONTENT, name="plainfile")
        assert file_size(os.path.join(plain, "app.log")) == 0

    def test_file_size_stat_failure_raises_storage_error(self, temp_dir_manager):
        too_long = OSError(errno.ENAMETOOLONG, "File name too long")
        with patch("logalert.log_analysis.scanner.os.stat", side_effect=too_long):
            with pytest.raises(StorageIOError):
                file_size(os.path.join(temp_dir_manager, "app.log"))


class TestScannerPathErrors:

    def test_path_under_a_regular_file_is_skipped(self, scanner, temp_dir_manager):
        plain = write_log(temp_dir_manager, CONTENT, name="plainfile")
        result = scanner.scan(os.path.join(plain, "app.log"), ["error"], [], 0)
        assert result.skipped
