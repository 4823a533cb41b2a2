"""
CSV output for crawl results.

IncrementalCsvSink writes the header once and then appends each batch as
soon as it completes, so every finished batch is on disk even if a later
batch never runs. Each field is quoted, with embedded quotes doubled.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Row = Union[Sequence[str], object]


def _to_row(row: Row) -> List[str]:
    """Accept records exposing as_row() or plain sequences."""
    values = row.as_row() if hasattr(row, 'as_row') else row
    return ['' if value is None else str(value) for value in values]


def _write_rows(handle, rows: Iterable[Row]) -> int:
    writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator='\n')
    count = 0
    for row in rows:
        writer.writerow(_to_row(row))
        count += 1
    return count


class IncrementalCsvSink:
    """
    Append-only CSV file written one batch at a time.

    Usage:
        sink = IncrementalCsvSink()
        sink.open(path, ['name', 'sku', 'price', 'availability'])
        sink.append_rows(records)
    """

    def __init__(self):
        self.path: Optional[Path] = None
        self.rows_written = 0

    def open(self, path: Union[str, Path], header: Sequence[str]):
        """
        Create or truncate the file and write the header line.

        Args:
            path: Output file path
            header: Column names, written unquoted
        """
        self.path = Path(path)
        self.rows_written = 0
        with open(self.path, 'w', encoding='utf-8', newline='') as f:
            f.write(','.join(header) + '\n')
        logger.debug(f"Opened CSV output {self.path}")

    def append_rows(self, rows: Iterable[Row]) -> int:
        """
        Append rows and close the file immediately.

        Returns:
            Number of rows written by this call
        """
        if self.path is None:
            raise RuntimeError("IncrementalCsvSink.open() must be called before append_rows()")

        rows = list(rows)
        if not rows:
            return 0

        with open(self.path, 'a', encoding='utf-8', newline='') as f:
            count = _write_rows(f, rows)
            f.flush()
        self.rows_written += count
        return count


def write_csv(path: Union[str, Path], header: Sequence[str], rows: Iterable[Row]) -> int:
    """
    Write a complete CSV file in one shot.

    Returns:
        Number of data rows written
    """
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(','.join(header) + '\n')
        return _write_rows(f, rows)
