"""Flat-file visitor log with per-day deduplication.

The log is a comma-delimited text file with a fixed header line followed by
one visit per line, in insertion order::

    IP,Region,DateTime,longLat
    1.2.3.4,NA,2024-01-01T10:00:00Z,1,2

Lines are split into at most four fields, so commas inside the trailing
``longLat`` field survive a round trip. Nothing is quoted or escaped; commas
in any other field corrupt the line.

All operations on a :class:`VisitorStore` hold one lock, so within a process
a capture can neither race another capture's duplicate check nor be lost to
a concurrent rewrite. Separate processes sharing the file are not
coordinated.
"""

import contextlib
import logging
import os
import pathlib
import shutil
import tempfile
import threading
from collections.abc import Callable

from .errors import StorageError
from .models import VisitorRecord, date_key

logger = logging.getLogger(__name__)

HEADER = 'IP,Region,DateTime,longLat'
FIELD_COUNT = 4
# Fewest fields a line needs to carry a dateTime; shorter lines are discarded
# whenever the log is rewritten.
MIN_REWRITE_FIELDS = 3

READ_FAILED = 'Failed to read data'
SAVE_FAILED = 'Failed to save data'
DOWNLOAD_FAILED = 'Failed to download file'


def split_line(line: str) -> list[str]:
    """Split a log line into at most four fields."""
    return line.split(',', FIELD_COUNT - 1)


class VisitorStore:
    """Owns the visitor log file and serializes every access to it."""

    def __init__(self, path: pathlib.Path | str) -> None:
        self.path = pathlib.Path(path)
        self._lock = threading.Lock()

    def ensure(self) -> None:
        """Create the parent directory and a header-only log if they are missing."""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                if not self.path.exists():
                    self.path.write_text(HEADER + '\n', encoding='utf-8')
                    logger.info('Created visitor log at %s', self.path)
            except OSError as exc:
                logger.exception('Error initialising visitor log %s', self.path)
                raise StorageError(SAVE_FAILED) from exc

    def read_all(self) -> list[VisitorRecord]:
        """Return every well-formed record in file order.

        Lines with fewer than four fields are skipped with a warning.
        """
        with self._lock:
            lines = self._read_lines()

        records: list[VisitorRecord] = []
        for lineno, line in enumerate(lines, start=2):
            fields = split_line(line)
            if len(fields) < FIELD_COUNT:
                logger.warning(
                    'Skipping malformed line %d in %s: %r', lineno, self.path, line
                )
                continue
            ip, region, date_time, long_lat = fields
            records.append(
                VisitorRecord(ip=ip, region=region, dateTime=date_time, longLat=long_lat)
            )
        return records

    def append_if_absent(self, record: VisitorRecord) -> bool:
        """Append *record* unless its ip was already logged on the same date.

        Returns True if the record was written. The first record of the day
        wins: a later one with a different region or longLat is not stored.
        """
        current_date = record.date_key
        with self._lock:
            for line in self._read_lines():
                fields = split_line(line)
                if len(fields) < MIN_REWRITE_FIELDS:
                    continue
                if fields[0] == record.ip and date_key(fields[2]) == current_date:
                    logger.debug(
                        'Visitor %s already logged on %s', record.ip, current_date
                    )
                    return False

            try:
                with self.path.open('a', encoding='utf-8') as f:
                    f.write(record.to_line() + '\n')
            except (OSError, UnicodeError) as exc:
                logger.exception('Error writing to visitor log %s', self.path)
                raise StorageError(SAVE_FAILED) from exc

        logger.debug('Logged visitor %s on %s', record.ip, current_date)
        return True

    def rewrite_filtered(self, predicate: Callable[[VisitorRecord], bool]) -> int:
        """Keep only the records for which *predicate* is true.

        Lines too short to carry a dateTime are always dropped; kept lines are
        written back unchanged. The file is replaced atomically. Returns the
        number of lines removed. A log with no records is left untouched.
        """
        with self._lock:
            lines = self._read_lines()
            if not lines:
                return 0

            kept: list[str] = []
            for line in lines:
                fields = split_line(line)
                if len(fields) < MIN_REWRITE_FIELDS:
                    continue
                fields += [''] * (FIELD_COUNT - len(fields))
                ip, region, date_time, long_lat = fields
                record = VisitorRecord(
                    ip=ip, region=region, dateTime=date_time, longLat=long_lat
                )
                if predicate(record):
                    kept.append(line)

            body = HEADER + '\n' + '\n'.join(kept) + ('\n' if kept else '')
            self._replace(body)
            return len(lines) - len(kept)

    def export_path(self) -> pathlib.Path:
        """Return the log path for download, checking it is readable."""
        with self._lock:
            if not os.access(self.path, os.R_OK):
                logger.error('Visitor log %s is not readable for download', self.path)
                raise StorageError(DOWNLOAD_FAILED)
        return self.path

    def _read_lines(self) -> list[str]:
        """Return the non-empty data lines, header excluded. Caller holds the lock."""
        try:
            text = self.path.read_text(encoding='utf-8', errors='replace')
        except OSError as exc:
            logger.exception('Error reading visitor log %s', self.path)
            raise StorageError(READ_FAILED) from exc
        lines = text.strip().split('\n')
        return [line for line in lines[1:] if line.strip()]

    def _replace(self, body: str) -> None:
        """Write *body* to a sibling temp file and move it over the log."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix='.tmp'
            )
        except OSError as exc:
            logger.exception('Error creating temp file next to %s', self.path)
            raise StorageError(SAVE_FAILED) from exc
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(body)
            shutil.copymode(self.path, tmp_name)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.exception('Error rewriting visitor log %s', self.path)
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise StorageError(SAVE_FAILED) from exc
