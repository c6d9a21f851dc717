"""
Table Copy Pipeline

Runs one complete copy: destination schema sync, column order check, then the
row-by-row transfer. Fatal errors propagate as TableCopyError subclasses;
per-row insert failures come back in the result dictionary.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import logging
import time

from mysql_table_copy.data_transfer import transfer_rows
from mysql_table_copy.ddl_generator import DDLGenerator
from mysql_table_copy.schema_sync import SchemaSynchronizer
from mysql_table_copy.table_config import resolve_table_pair
from mysql_table_copy.validation import MigrationValidator

logger = logging.getLogger(__name__)


def copy_table(
    source_conn,
    dest_conn,
    source_table: str,
    dest_table: Optional[str] = None,
    escape_default_literals: bool = False,
    verify_column_order: bool = True,
    echo_rows: bool = False,
    encoding: str = 'utf-8',
    progress_interval: Optional[int] = None
) -> Dict[str, Any]:
    """
    Copy a table's structure (when missing) and contents to the destination.

    Args:
        source_conn: Open source connection
        dest_conn: Open destination connection, ideally in autocommit mode
        source_table: Source table name
        dest_table: Destination table name (defaults to the source name)
        escape_default_literals: Escape quotes inside default literals in the DDL
        verify_column_order: Refuse to copy unless destination columns line up
            with source columns
        echo_rows: Log every row at INFO
        encoding: Encoding used to decode byte values
        progress_interval: Rows between progress lines

    Returns:
        Copy result dictionary

    Raises:
        TableCopyError: On any fatal schema or source read error
    """
    start_time = time.time()
    source_table, dest_table = resolve_table_pair(source_table, dest_table)
    logger.info(f"Starting copy: {source_table} -> {dest_table}")

    synchronizer = SchemaSynchronizer(
        source_conn,
        dest_conn,
        DDLGenerator(escape_default_literals=escape_default_literals),
    )
    schema_action = synchronizer.sync(source_table, dest_table)

    if verify_column_order:
        MigrationValidator(source_conn, dest_conn).ensure_column_order(source_table, dest_table)

    stats = transfer_rows(
        source_conn,
        dest_conn,
        source_table,
        dest_table,
        echo_rows=echo_rows,
        encoding=encoding,
        progress_interval=progress_interval,
    )

    elapsed_time = time.time() - start_time
    result = {
        'source_table': source_table,
        'dest_table': dest_table,
        'schema_action': schema_action.value,
        **stats.to_dict(),
        'elapsed_time_seconds': elapsed_time,
        'success': stats.rows_failed == 0,
        'timestamp': datetime.now().isoformat(),
    }

    logger.info(
        f"Copy {source_table} -> {dest_table} finished: "
        f"{stats.rows_inserted:,} inserted, {stats.rows_failed:,} failed "
        f"of {stats.rows_attempted:,} attempted in {elapsed_time:.2f}s"
    )
    return result


def copy_table_by_conn_id(
    source_conn_id: str,
    dest_conn_id: str,
    source_table: str,
    dest_table: Optional[str] = None,
    **options: Any
) -> Dict[str, Any]:
    """
    Convenience function to copy a table between two Airflow connections.

    Args:
        source_conn_id: Airflow connection ID of the source database
        dest_conn_id: Airflow connection ID of the destination database
        source_table: Source table name
        dest_table: Destination table name
        **options: Passed through to copy_table

    Returns:
        Copy result dictionary
    """
    from mysql_table_copy.odbc_helper import OdbcConnectionHelper

    source = OdbcConnectionHelper(source_conn_id)
    dest = OdbcConnectionHelper(dest_conn_id)

    with source.connection() as source_conn, dest.connection(autocommit=True) as dest_conn:
        return copy_table(source_conn, dest_conn, source_table, dest_table, **options)
