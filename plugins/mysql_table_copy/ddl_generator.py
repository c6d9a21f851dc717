"""
MySQL DDL Generation Module

This module generates the CREATE TABLE statement for a destination table from
the source table's column descriptors. Output is a pure function of the input:
the same descriptors always render the same text.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from mysql_table_copy.schema_extractor import ColumnDescriptor
from mysql_table_copy.table_config import quote_identifier, quote_table_name
import logging

logger = logging.getLogger(__name__)

CREATED_AT_COLUMN = "created_at"
UPDATED_AT_COLUMN = "updated_at"

CREATED_AT_DEFAULT = "DEFAULT CURRENT_TIMESTAMP"
UPDATED_AT_DEFAULT = "DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP"


@dataclass
class TableDefinition:
    """Rendered column definitions plus the primary key columns, in order."""

    column_definitions: List[str] = field(default_factory=list)
    primary_key_columns: List[str] = field(default_factory=list)

    def primary_key_clause(self) -> str:
        """PRIMARY KEY clause, or '' when the table has no primary key."""
        if not self.primary_key_columns:
            return ""
        quoted = ', '.join(quote_identifier(col) for col in self.primary_key_columns)
        return f"PRIMARY KEY ({quoted})"

    def render(self) -> str:
        """Column definition list suitable for embedding in CREATE TABLE (...)."""
        parts = list(self.column_definitions)
        pk_clause = self.primary_key_clause()
        if pk_clause:
            parts.append(pk_clause)
        return ', '.join(parts)


class DDLGenerator:
    """Generate MySQL DDL statements from column descriptors."""

    def __init__(self, escape_default_literals: bool = False):
        """
        Initialize the DDL generator.

        Args:
            escape_default_literals: Escape quotes and backslashes inside default
                values. Off by default, in which case defaults are embedded
                verbatim and a default containing a quote yields invalid SQL.
        """
        self.escape_default_literals = escape_default_literals

    def generate_column_definition(self, column: ColumnDescriptor) -> str:
        """
        Generate a column definition for CREATE TABLE.

        created_at and updated_at get timestamp defaults regardless of their
        catalog nullability or default. Every other column gets its declared
        type, a nullability marker, an optional literal default and its extra
        attributes (auto_increment and similar) appended verbatim.

        Args:
            column: Source column descriptor

        Returns:
            Column definition string
        """
        parts = [quote_identifier(column.name), column.declared_type]

        if column.name == CREATED_AT_COLUMN:
            parts.append(CREATED_AT_DEFAULT)
            return ' '.join(parts)

        if column.name == UPDATED_AT_COLUMN:
            parts.append(UPDATED_AT_DEFAULT)
            return ' '.join(parts)

        parts.append('NULL' if column.nullable else 'NOT NULL')

        if column.default_value is not None:
            parts.append(f"DEFAULT {self._quote_default(column.default_value)}")

        if column.extra:
            parts.append(column.extra)

        return ' '.join(parts)

    def generate_table_definition(self, columns: Sequence[ColumnDescriptor]) -> TableDefinition:
        """
        Build the table definition for a sequence of column descriptors.

        Primary key columns are collected in first-occurrence order, including
        created_at / updated_at when they are part of the key.

        Args:
            columns: Column descriptors in catalog order

        Returns:
            TableDefinition

        Raises:
            ValueError: If no columns are given
        """
        if not columns:
            raise ValueError("Cannot build a table definition without columns")

        definition = TableDefinition()
        for column in columns:
            definition.column_definitions.append(self.generate_column_definition(column))
            if column.is_primary_key and column.name not in definition.primary_key_columns:
                definition.primary_key_columns.append(column.name)

        return definition

    def generate_create_table(self, table_name: str, columns: Sequence[ColumnDescriptor]) -> str:
        """
        Generate CREATE TABLE statement for the destination.

        Args:
            table_name: Destination table name
            columns: Source column descriptors in catalog order

        Returns:
            CREATE TABLE DDL statement
        """
        definition = self.generate_table_definition(columns)
        return f"CREATE TABLE {quote_table_name(table_name)} ({definition.render()})"

    def _quote_default(self, value: str) -> str:
        """Render a default value as a single-quoted literal."""
        if self.escape_default_literals:
            value = value.replace('\\', '\\\\').replace("'", "''")
        return f"'{value}'"
