"""
Data Transfer Module

This module copies rows from a source table to a destination table without
knowing the column set in advance. A RowStreamer scans the source and hands
out one row at a time; a BulkInserter binds each row positionally into a
single reused INSERT statement.

A failed insert is recorded and skipped. A failed read aborts the copy, and
rows already inserted stay in the destination.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence
import logging
import os

from mysql_table_copy.errors import (
    ColumnDiscoveryError,
    RowScanError,
    SourceQueryError,
    TableCopyError,
)
from mysql_table_copy.schema_sync import commit_if_needed
from mysql_table_copy.table_config import quote_table_name

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 10000


def get_progress_interval() -> int:
    """Rows between progress log lines (ROW_PROGRESS_INTERVAL, 0 disables)."""
    try:
        return max(int(os.environ.get('ROW_PROGRESS_INTERVAL', DEFAULT_PROGRESS_INTERVAL)), 0)
    except ValueError:
        return DEFAULT_PROGRESS_INTERVAL


def normalize_value(value: Any, encoding: str = 'utf-8') -> Any:
    """
    Normalize one scanned value for insertion.

    Raw byte sequences are decoded to text; every other scalar passes through.

    Raises:
        UnicodeDecodeError: If the bytes are not valid in the given encoding
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode(encoding)
    return value


class RowStreamer:
    """Forward-only, single-use scan of every row in a source table."""

    def __init__(self, conn, table_name: str, encoding: str = 'utf-8'):
        """
        Initialize the row streamer.

        Args:
            conn: Open DB-API connection to the source database
            table_name: Source table name
            encoding: Encoding used to decode byte values
        """
        self.conn = conn
        self.table_name = table_name
        self.encoding = encoding
        self._cursor = None
        self._columns: Optional[List[str]] = None
        self._consumed = False

    def __enter__(self) -> "RowStreamer":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def columns(self) -> List[str]:
        """Column names discovered when the scan was opened."""
        if self._columns is None:
            raise RuntimeError("Row stream has not been opened")
        return list(self._columns)

    def open(self) -> List[str]:
        """
        Open the full-table scan and discover its columns.

        Returns:
            Column names in result-set order

        Raises:
            SourceQueryError: If the SELECT fails
            ColumnDiscoveryError: If the result set has no readable columns
        """
        query = f"SELECT * FROM {quote_table_name(self.table_name)}"
        logger.info(f"Starting data migration from '{self.table_name}'")

        try:
            self._cursor = self.conn.cursor()
            self._cursor.execute(query)
        except Exception as e:
            logger.error(f"Error fetching data from source table {self.table_name}: {e}")
            self.close()
            raise SourceQueryError(
                f"Error fetching data from source table '{self.table_name}': {e}",
                table_name=self.table_name,
            ) from e

        try:
            description = self._cursor.description
            columns = [col[0] for col in description] if description else []
        except Exception as e:
            self.close()
            raise ColumnDiscoveryError(
                f"Error fetching column information for '{self.table_name}': {e}",
                table_name=self.table_name,
            ) from e

        if not columns:
            self.close()
            raise ColumnDiscoveryError(
                f"Source query for '{self.table_name}' returned no columns",
                table_name=self.table_name,
            )

        self._columns = columns
        logger.info(f"Columns in source table: {columns}")
        return self.columns

    def rows(self) -> Iterator[List[Any]]:
        """
        Lazily yield every row as a list of normalized values.

        Each list has exactly len(columns) values. The sequence can be
        consumed once.

        Raises:
            RowScanError: If a row cannot be fetched or decoded
        """
        if self._cursor is None:
            raise RuntimeError("Row stream has not been opened")
        if self._consumed:
            raise RuntimeError("Row stream can only be consumed once")
        self._consumed = True
        return self._iterate()

    def _iterate(self) -> Iterator[List[Any]]:
        column_count = len(self._columns)
        row_number = 0

        while True:
            row_number += 1
            try:
                row = self._cursor.fetchone()
            except Exception as e:
                logger.error(f"Error scanning row {row_number} of {self.table_name}: {e}")
                raise RowScanError(
                    f"Error scanning row {row_number} of '{self.table_name}': {e}",
                    table_name=self.table_name,
                    row_number=row_number,
                ) from e

            if row is None:
                return

            if len(row) != column_count:
                raise RowScanError(
                    f"Row {row_number} of '{self.table_name}' has {len(row)} values, "
                    f"expected {column_count}",
                    table_name=self.table_name,
                    row_number=row_number,
                )

            try:
                values = [normalize_value(value, self.encoding) for value in row]
            except UnicodeDecodeError as e:
                raise RowScanError(
                    f"Error decoding row {row_number} of '{self.table_name}': {e}",
                    table_name=self.table_name,
                    row_number=row_number,
                ) from e

            yield values

    def close(self) -> None:
        if self._cursor is not None:
            try:
                self._cursor.close()
            except Exception:
                logger.exception(f"Exception occurred closing scan cursor for {self.table_name}")
            self._cursor = None


@dataclass
class RowInsertFailure:
    """A row the destination rejected."""

    row_number: int
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {'row_number': self.row_number, 'error': self.error}


@dataclass
class TransferStats:
    """Running counts of a copy, read-only once finalized."""

    columns: List[str] = field(default_factory=list)
    rows_attempted: int = 0
    rows_inserted: int = 0
    failures: List[RowInsertFailure] = field(default_factory=list)
    finalized: bool = False

    @property
    def rows_failed(self) -> int:
        return self.rows_attempted - self.rows_inserted

    def _check_open(self) -> None:
        if self.finalized:
            raise RuntimeError("TransferStats is finalized")

    def record_attempt(self) -> None:
        self._check_open()
        self.rows_attempted += 1

    def record_success(self) -> None:
        self._check_open()
        self.rows_inserted += 1

    def record_failure(self, row_number: int, error: str) -> None:
        self._check_open()
        self.failures.append(RowInsertFailure(row_number, error))

    def finalize(self) -> "TransferStats":
        self.finalized = True
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            'columns': list(self.columns),
            'rows_attempted': self.rows_attempted,
            'rows_inserted': self.rows_inserted,
            'rows_failed': self.rows_failed,
            'failures': [failure.to_dict() for failure in self.failures],
        }


def build_insert_statement(table_name: str, column_count: int) -> str:
    """
    Build the positional INSERT statement for a table.

    Examples:
        >>> build_insert_statement("users", 3)
        'INSERT INTO `users` VALUES (?, ?, ?)'
    """
    if column_count < 1:
        raise ValueError(f"Insert statement needs at least one column, got {column_count}")
    placeholders = ', '.join(['?'] * column_count)
    return f"INSERT INTO {quote_table_name(table_name)} VALUES ({placeholders})"


class BulkInserter:
    """Insert rows one at a time through a single reused statement."""

    def __init__(
        self,
        conn,
        table_name: str,
        column_count: int,
        column_names: Optional[Sequence[str]] = None,
        echo_rows: bool = False,
        progress_interval: Optional[int] = None
    ):
        """
        Initialize the inserter.

        Args:
            conn: Open DB-API connection to the destination database
            table_name: Destination table name
            column_count: Number of columns discovered on the source scan
            column_names: Source column names, used only for row echo
            echo_rows: Log every row at INFO instead of DEBUG
            progress_interval: Rows between progress lines (None reads the environment)
        """
        self.conn = conn
        self.table_name = table_name
        self.column_count = column_count
        self.column_names = list(column_names) if column_names else None
        self.echo_rows = echo_rows
        self.progress_interval = (
            get_progress_interval() if progress_interval is None else progress_interval
        )
        self.insert_sql = build_insert_statement(table_name, column_count)
        self.stats = TransferStats(columns=list(self.column_names or []))
        self._cursor = None
        logger.info(f"Insert Statement: {self.insert_sql}")

    def _get_cursor(self):
        # pyodbc keeps the last statement prepared on a cursor, so executing the
        # same SQL text on one cursor prepares it once
        if self._cursor is None:
            self._cursor = self.conn.cursor()
        return self._cursor

    def _echo(self, row_number: int, values: Sequence[Any]) -> None:
        level = logging.INFO if self.echo_rows else logging.DEBUG
        if not logger.isEnabledFor(level):
            return
        names = self.column_names or [f"col{i + 1}" for i in range(len(values))]
        row_data = ', '.join(f"{name}: {value}" for name, value in zip(names, values))
        logger.log(level, f"Row {row_number}: {row_data}")

    def insert_row(self, row_number: int, values: Sequence[Any]) -> bool:
        """
        Insert one row, isolating any failure to that row.

        Args:
            row_number: 1-based position of the row in the source scan
            values: Row values in source column order

        Returns:
            True if the row was inserted

        Raises:
            ValueError: If the row length differs from the column count
        """
        if len(values) != self.column_count:
            raise ValueError(
                f"Row {row_number} has {len(values)} values, insert statement expects {self.column_count}"
            )

        self.stats.record_attempt()
        self._echo(row_number, values)

        try:
            self._get_cursor().execute(self.insert_sql, list(values))
            commit_if_needed(self.conn)
        except Exception as e:
            logger.warning(f"Error inserting row {row_number}: {e}")
            self.stats.record_failure(row_number, str(e))
            self._rollback()
            return False

        self.stats.record_success()
        logger.debug(f"Successfully inserted row {row_number}")
        return True

    def insert_all(self, rows: Iterable[Sequence[Any]]) -> TransferStats:
        """
        Insert every row from the iterable and return the final stats.

        Raises:
            TableCopyError: If pulling the next row fails; the partial stats
                are attached to the exception as .stats
        """
        row_number = 0
        try:
            for values in rows:
                row_number += 1
                self.insert_row(row_number, values)
                if self.progress_interval and row_number % self.progress_interval == 0:
                    logger.info(
                        f"Progress: {self.stats.rows_inserted:,}/{self.stats.rows_attempted:,} rows inserted"
                    )
        except TableCopyError as e:
            e.stats = self.stats.finalize()
            raise
        return self.stats.finalize()

    def _rollback(self) -> None:
        if getattr(self.conn, "autocommit", False) is True:
            return
        try:
            self.conn.rollback()
        except Exception:
            logger.exception("Exception occurred during destination rollback")

    def close(self) -> None:
        if self._cursor is not None:
            try:
                self._cursor.close()
            except Exception:
                logger.exception(f"Exception occurred closing insert cursor for {self.table_name}")
            self._cursor = None


def transfer_rows(
    source_conn,
    dest_conn,
    source_table: str,
    dest_table: str,
    echo_rows: bool = False,
    encoding: str = 'utf-8',
    progress_interval: Optional[int] = None
) -> TransferStats:
    """
    Copy every row of the source table into the destination table.

    The destination table must already exist with columns in source order.

    Args:
        source_conn: Open source connection
        dest_conn: Open destination connection
        source_table: Source table name
        dest_table: Destination table name
        echo_rows: Log every row at INFO
        encoding: Encoding used to decode byte values
        progress_interval: Rows between progress lines

    Returns:
        Final TransferStats

    Raises:
        SourceQueryError, ColumnDiscoveryError, RowScanError: On fatal read errors
    """
    started = datetime.now()

    with RowStreamer(source_conn, source_table, encoding=encoding) as streamer:
        inserter = BulkInserter(
            dest_conn,
            dest_table,
            len(streamer.columns),
            column_names=streamer.columns,
            echo_rows=echo_rows,
            progress_interval=progress_interval,
        )
        try:
            stats = inserter.insert_all(streamer.rows())
        finally:
            inserter.close()

    elapsed = (datetime.now() - started).total_seconds()
    if stats.rows_failed:
        logger.warning(
            f"Data migration completed with {stats.rows_failed:,} failed rows. "
            f"Total rows migrated: {stats.rows_inserted:,} of {stats.rows_attempted:,} in {elapsed:.2f}s"
        )
    else:
        logger.info(
            f"Data migration completed successfully. Total rows migrated: {stats.rows_inserted:,} "
            f"in {elapsed:.2f}s"
        )
    return stats
