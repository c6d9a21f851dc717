"""
MySQL Table Copy Utilities

This package replicates a single table, structure and contents, from one
MySQL-family database to another without declaring the destination schema.

Modules:
- schema_extractor: Read column metadata with DESCRIBE
- ddl_generator: Synthesize CREATE TABLE from column metadata
- schema_sync: Create the destination table when it is missing
- data_transfer: Stream source rows and insert them one by one
- validation: Column order and row count checks
- pipeline: Run a complete copy
- odbc_helper: pyodbc connections from Airflow connection IDs

Options:
- MYSQL_ODBC_DRIVER: ODBC driver name (default MySQL ODBC 8.0 Unicode Driver)
- ROW_PROGRESS_INTERVAL=N: Log a progress line every N rows (0 disables)

Byte values are decoded to text before insertion (utf-8 unless an encoding is
given). A value that does not decode aborts the copy at that row, so binary
columns holding arbitrary bytes need encoding="latin-1", which maps every byte
to one character and back.
"""

__version__ = "1.0.0"

from mysql_table_copy import errors
from mysql_table_copy import table_config
from mysql_table_copy import schema_extractor
from mysql_table_copy import ddl_generator
from mysql_table_copy import schema_sync
from mysql_table_copy import data_transfer
from mysql_table_copy import validation
from mysql_table_copy import pipeline

# odbc_helper needs Airflow and pyodbc; import it explicitly where used
# from mysql_table_copy import odbc_helper

__all__ = [
    "errors",
    "table_config",
    "schema_extractor",
    "ddl_generator",
    "schema_sync",
    "data_transfer",
    "validation",
    "pipeline",
    "odbc_helper",
]
