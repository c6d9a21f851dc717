"""
Table Copy Validation Module

Checks that back the positional insert: the destination's columns must be in
source catalog order, since INSERT ... VALUES carries no column list. Also
compares row counts after a copy.
"""

from datetime import datetime
from typing import Any, Dict, List

from mysql_table_copy.errors import ColumnOrderMismatchError
from mysql_table_copy.schema_extractor import SchemaExtractor
from mysql_table_copy.table_config import quote_table_name
import logging

logger = logging.getLogger(__name__)


class MigrationValidator:
    """Validate a copy from a source table to a destination table."""

    def __init__(self, source_conn, dest_conn):
        """
        Initialize the validator.

        Args:
            source_conn: Open DB-API connection to the source database
            dest_conn: Open DB-API connection to the destination database
        """
        self.source_conn = source_conn
        self.dest_conn = dest_conn

    def validate_column_order(self, source_table: str, dest_table: str) -> Dict[str, Any]:
        """
        Compare destination column order with source column order.

        Names are compared case-insensitively, as MySQL column names are.

        Returns:
            Validation result dictionary
        """
        source_columns = SchemaExtractor(self.source_conn).get_column_names(source_table)
        dest_columns = SchemaExtractor(self.dest_conn).get_column_names(dest_table)

        mismatches: List[Dict[str, Any]] = []
        for position in range(max(len(source_columns), len(dest_columns))):
            source_col = source_columns[position] if position < len(source_columns) else None
            dest_col = dest_columns[position] if position < len(dest_columns) else None
            if source_col is None or dest_col is None or source_col.lower() != dest_col.lower():
                mismatches.append({
                    'position': position + 1,
                    'source_column': source_col,
                    'dest_column': dest_col,
                })

        result = {
            'source_table': source_table,
            'dest_table': dest_table,
            'source_columns': source_columns,
            'dest_columns': dest_columns,
            'mismatches': mismatches,
            'validation_passed': not mismatches,
        }

        if result['validation_passed']:
            logger.info(f"✓ Column order of {dest_table} matches {source_table} ({len(source_columns)} columns)")
        else:
            logger.warning(
                f"✗ Column order mismatch between {source_table} and {dest_table}: {mismatches}"
            )

        return result

    def ensure_column_order(self, source_table: str, dest_table: str) -> None:
        """
        Raise unless the destination columns line up with the source columns.

        Raises:
            ColumnOrderMismatchError: On any positional difference
        """
        result = self.validate_column_order(source_table, dest_table)
        if not result['validation_passed']:
            first = result['mismatches'][0]
            raise ColumnOrderMismatchError(
                f"Destination table '{dest_table}' columns do not match source '{source_table}' "
                f"(first difference at position {first['position']}: "
                f"source={first['source_column']}, destination={first['dest_column']})",
                table_name=dest_table,
                source_columns=result['source_columns'],
                dest_columns=result['dest_columns'],
            )

    def validate_row_count(self, source_table: str, dest_table: str) -> Dict[str, Any]:
        """
        Compare row counts between source and destination tables.

        Returns:
            Validation result dictionary
        """
        source_count = self._count_rows(self.source_conn, source_table)
        dest_count = self._count_rows(self.dest_conn, dest_table)

        row_difference = dest_count - source_count
        percentage_difference = (row_difference / source_count * 100) if source_count > 0 else 0

        validation_result = {
            'source_table': source_table,
            'dest_table': dest_table,
            'source_count': source_count,
            'dest_count': dest_count,
            'row_difference': row_difference,
            'percentage_difference': percentage_difference,
            'validation_passed': source_count == dest_count,
            'validation_time': datetime.now().isoformat(),
        }

        if validation_result['validation_passed']:
            logger.info(f"✓ Row count validation passed for {dest_table}: {source_count:,} rows")
        else:
            logger.warning(
                f"✗ Row count mismatch for {dest_table}: "
                f"Source={source_count:,}, Destination={dest_count:,}, "
                f"Difference={row_difference:+,} ({percentage_difference:+.2f}%)"
            )

        return validation_result

    def _count_rows(self, conn, table_name: str) -> int:
        cursor = conn.cursor()
        try:
            cursor.execute(f"SELECT COUNT(*) FROM {quote_table_name(table_name)}")
            row = cursor.fetchone()
        finally:
            cursor.close()
        return (row[0] if row else 0) or 0
