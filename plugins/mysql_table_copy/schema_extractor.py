"""
MySQL Schema Extraction Module

This module reads a table's column metadata with DESCRIBE and turns each
catalog row into a ColumnDescriptor. Catalog order is preserved exactly: it is
the column order of the synthesized destination table and the positional
parameter order of every insert.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence

from mysql_table_copy.errors import SchemaIntrospectionError
from mysql_table_copy.table_config import quote_table_name
import logging

logger = logging.getLogger(__name__)


class KeyRole(str, Enum):
    """Key role of a column as far as the copy cares about it."""

    NONE = "NONE"
    PRIMARY = "PRIMARY"

    @classmethod
    def from_catalog(cls, key: Optional[str]) -> "KeyRole":
        # DESCRIBE reports PRI, UNI, MUL or ''; only PRI survives the copy
        if key and key.strip().upper() == "PRI":
            return cls.PRIMARY
        return cls.NONE


@dataclass(frozen=True)
class ColumnDescriptor:
    """One source column, as reported by the catalog."""

    name: str
    declared_type: str
    nullable: bool
    key_role: KeyRole = KeyRole.NONE
    default_value: Optional[str] = None
    extra: str = ""

    @property
    def is_primary_key(self) -> bool:
        return self.key_role is KeyRole.PRIMARY


def _to_text(value: Any) -> Optional[str]:
    """Catalog cells can arrive as bytes (MySQL 8 reports Type as a blob)."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode('utf-8')
    return str(value)


def parse_describe_row(row: Sequence[Any]) -> ColumnDescriptor:
    """
    Convert one DESCRIBE row into a ColumnDescriptor.

    Args:
        row: (Field, Type, Null, Key, Default, Extra)

    Returns:
        ColumnDescriptor for the row

    Raises:
        ValueError: If the row does not have the DESCRIBE shape
    """
    if len(row) < 6:
        raise ValueError(f"Expected 6 DESCRIBE fields, got {len(row)}")

    field, field_type, null, key, default, extra = (_to_text(cell) for cell in row[:6])

    if not field or not field_type:
        raise ValueError(f"Column name and type are required, got {field!r} {field_type!r}")

    return ColumnDescriptor(
        name=field,
        declared_type=field_type,
        nullable=(null or '').strip().upper() != 'NO',
        key_role=KeyRole.from_catalog(key),
        default_value=default,
        extra=(extra or '').strip(),
    )


class SchemaExtractor:
    """Extract column metadata from a MySQL-family database."""

    def __init__(self, conn):
        """
        Initialize the schema extractor.

        Args:
            conn: Open DB-API connection to the database holding the table
        """
        self.conn = conn

    def get_columns(self, table_name: str) -> List[ColumnDescriptor]:
        """
        Get all columns of a table in catalog order.

        Args:
            table_name: Table name ('table' or 'db.table')

        Returns:
            List of ColumnDescriptor, one per column

        Raises:
            SchemaIntrospectionError: If the table is missing or DESCRIBE fails
        """
        query = f"DESCRIBE {quote_table_name(table_name)}"

        cursor = None
        try:
            cursor = self.conn.cursor()
            cursor.execute(query)
            rows = cursor.fetchall()
        except Exception as e:
            logger.error(f"Error describing table {table_name}: {e}")
            raise SchemaIntrospectionError(
                f"Failed to query table definition for '{table_name}': {e}",
                table_name=table_name,
            ) from e
        finally:
            if cursor is not None:
                cursor.close()

        if not rows:
            raise SchemaIntrospectionError(
                f"Table '{table_name}' has no columns or does not exist",
                table_name=table_name,
            )

        columns = []
        for position, row in enumerate(rows, start=1):
            try:
                columns.append(parse_describe_row(row))
            except (ValueError, UnicodeDecodeError) as e:
                raise SchemaIntrospectionError(
                    f"Failed to scan definition of column {position} of '{table_name}': {e}",
                    table_name=table_name,
                ) from e

        logger.info(f"Read {len(columns)} column definitions from {table_name}")
        return columns

    def get_column_names(self, table_name: str) -> List[str]:
        """Column names of a table in catalog order."""
        return [column.name for column in self.get_columns(table_name)]


def extract_columns(conn, table_name: str) -> List[ColumnDescriptor]:
    """
    Convenience function to read a table's column descriptors.

    Args:
        conn: Open DB-API connection
        table_name: Table name

    Returns:
        List of ColumnDescriptor in catalog order
    """
    return SchemaExtractor(conn).get_columns(table_name)
