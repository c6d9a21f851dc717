"""
Table Copy Error Taxonomy

Every fatal failure of a table copy is raised as a TableCopyError subclass.
Schema errors stop the run before any row moves; source read errors stop it
at the current row. Destination write errors are not exceptions at all: they
are recorded per row in TransferStats and the copy carries on.
"""

from typing import Optional


class TableCopyError(Exception):
    """Base class for fatal table copy failures."""

    def __init__(self, message: str, table_name: Optional[str] = None):
        super().__init__(message)
        self.table_name = table_name
        # Partial TransferStats, attached when the failure happens mid-copy
        self.stats = None


class SchemaError(TableCopyError):
    """The destination schema could not be established."""


class SchemaIntrospectionError(SchemaError):
    """Source column metadata could not be read."""


class SchemaCheckError(SchemaError):
    """The destination catalog could not be queried for the table."""


class SchemaCreationError(SchemaError):
    """The synthesized CREATE TABLE statement failed on the destination."""


class ColumnOrderMismatchError(SchemaError):
    """Destination columns are not in source catalog order."""

    def __init__(self, message: str, table_name: Optional[str] = None,
                 source_columns=None, dest_columns=None):
        super().__init__(message, table_name)
        self.source_columns = list(source_columns or [])
        self.dest_columns = list(dest_columns or [])


class SourceReadError(TableCopyError):
    """The source table scan failed."""


class SourceQueryError(SourceReadError):
    """The full-table scan could not be opened."""


class ColumnDiscoveryError(SourceReadError):
    """Result-set column names could not be read from the scan."""


class RowScanError(SourceReadError):
    """A row could not be fetched or decoded."""

    def __init__(self, message: str, table_name: Optional[str] = None,
                 row_number: Optional[int] = None):
        super().__init__(message, table_name)
        self.row_number = row_number
