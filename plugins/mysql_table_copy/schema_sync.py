"""
Schema Synchronization Module

Makes sure the destination table exists before any row is copied. An existing
destination table is left untouched; a missing one is created from the source
table's introspected columns.
"""

from enum import Enum
from typing import Optional

from mysql_table_copy.ddl_generator import DDLGenerator
from mysql_table_copy.errors import SchemaCheckError, SchemaCreationError
from mysql_table_copy.schema_extractor import SchemaExtractor
from mysql_table_copy.table_config import parse_table_name
import logging

logger = logging.getLogger(__name__)

TABLE_EXISTS_QUERY = """
SELECT table_name
FROM information_schema.tables
WHERE table_schema = COALESCE(?, DATABASE())
  AND table_name = ?
"""


class SyncState(str, Enum):
    CHECKING = "checking"
    DONE = "done"


class SyncOutcome(str, Enum):
    EXISTS = "exists"
    CREATED = "created"


def commit_if_needed(conn) -> None:
    """Commit unless the connection is already in autocommit mode."""
    if getattr(conn, "autocommit", False) is not True:
        conn.commit()


class SchemaSynchronizer:
    """Create the destination table from the source definition when it is missing."""

    def __init__(self, source_conn, dest_conn, ddl_generator: Optional[DDLGenerator] = None):
        """
        Initialize the synchronizer.

        Args:
            source_conn: Open DB-API connection to the source database
            dest_conn: Open DB-API connection to the destination database
            ddl_generator: Generator used for the CREATE TABLE statement
        """
        self.source_conn = source_conn
        self.dest_conn = dest_conn
        self.ddl_generator = ddl_generator or DDLGenerator()
        self.state = SyncState.CHECKING
        self.last_ddl: Optional[str] = None

    def table_exists(self, table_name: str) -> bool:
        """
        Check the destination catalog for a table.

        Args:
            table_name: Destination table name ('table' or 'db.table')

        Returns:
            True if the table exists

        Raises:
            SchemaCheckError: If the catalog query fails
        """
        database, table = parse_table_name(table_name)

        cursor = None
        try:
            cursor = self.dest_conn.cursor()
            cursor.execute(TABLE_EXISTS_QUERY, [database, table])
            row = cursor.fetchone()
        except Exception as e:
            logger.error(f"Error checking table existence for {table_name}: {e}")
            raise SchemaCheckError(
                f"Error checking existence of destination table '{table_name}': {e}",
                table_name=table_name,
            ) from e
        finally:
            if cursor is not None:
                cursor.close()

        return row is not None

    def sync(self, source_table: str, dest_table: str) -> SyncOutcome:
        """
        Ensure the destination table exists.

        Runs to completion before any data moves. Calling it again once the
        table exists is a no-op.

        Args:
            source_table: Source table name
            dest_table: Destination table name

        Returns:
            SyncOutcome.EXISTS or SyncOutcome.CREATED

        Raises:
            SchemaCheckError: If the destination catalog cannot be queried
            SchemaIntrospectionError: If the source columns cannot be read
            SchemaCreationError: If the CREATE TABLE statement fails
        """
        self.state = SyncState.CHECKING

        if self.table_exists(dest_table):
            logger.info(f"Table '{dest_table}' already exists")
            self.state = SyncState.DONE
            return SyncOutcome.EXISTS

        columns = SchemaExtractor(self.source_conn).get_columns(source_table)
        ddl = self.ddl_generator.generate_create_table(dest_table, columns)
        self.last_ddl = ddl
        logger.debug(f"Executing DDL: {ddl}")

        cursor = None
        try:
            cursor = self.dest_conn.cursor()
            cursor.execute(ddl)
            commit_if_needed(self.dest_conn)
        except Exception as e:
            logger.error(f"Failed to create table {dest_table} from {source_table}: {e}")
            raise SchemaCreationError(
                f"Failed to create table '{dest_table}' from '{source_table}': {e}",
                table_name=dest_table,
            ) from e
        finally:
            if cursor is not None:
                cursor.close()

        logger.info(f"Table '{dest_table}' created successfully")
        self.state = SyncState.DONE
        return SyncOutcome.CREATED


def sync_table_schema(
    source_conn,
    dest_conn,
    source_table: str,
    dest_table: str,
    escape_default_literals: bool = False
) -> SyncOutcome:
    """
    Convenience function to synchronize one table.

    Args:
        source_conn: Open source connection
        dest_conn: Open destination connection
        source_table: Source table name
        dest_table: Destination table name
        escape_default_literals: Escape quotes inside default literals

    Returns:
        SyncOutcome
    """
    synchronizer = SchemaSynchronizer(
        source_conn,
        dest_conn,
        DDLGenerator(escape_default_literals=escape_default_literals),
    )
    return synchronizer.sync(source_table, dest_table)
