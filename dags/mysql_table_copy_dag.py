"""
MySQL Table Copy DAG

This DAG copies a single table from a source MySQL database to a destination
MySQL database:
1. Validate the source/destination table names
2. Create the destination table from the source definition if it is missing
3. Check that destination columns line up with source columns
4. Copy every row, skipping (and reporting) rows the destination rejects
5. Compare row counts and log a summary

Destination table creation and each row insert commit independently. A fatal
error leaves already-copied rows in place, so the DAG does not retry.
"""

from airflow.sdk import dag, task
from airflow.models.param import Param
from pendulum import datetime
from typing import Dict, Any
import logging

from mysql_table_copy.table_config import load_default_table, resolve_table_pair

logger = logging.getLogger(__name__)


@dag(
    dag_id="mysql_table_copy",
    start_date=datetime(2025, 1, 1),
    schedule=None,  # Run manually or trigger via API
    catchup=False,
    max_active_runs=1,
    is_paused_upon_creation=False,
    doc_md=__doc__,
    default_args={
        "owner": "data-team",
        "retries": 0,
    },
    params={
        "source_conn_id": Param(
            default="mysql_source",
            type="string",
            description="Source MySQL connection ID"
        ),
        "target_conn_id": Param(
            default="mysql_target",
            type="string",
            description="Destination MySQL connection ID"
        ),
        "source_table": Param(
            default=load_default_table("SOURCE_TABLE"),
            type="string",
            description="Source table, 'table' or 'db.table'. Defaults from SOURCE_TABLE env var."
        ),
        "dest_table": Param(
            default=load_default_table("DEST_TABLE"),
            type="string",
            description="Destination table (blank reuses the source name). Defaults from DEST_TABLE env var."
        ),
        "verify_column_order": Param(
            default=True,
            type="boolean",
            description="Refuse to copy unless destination columns match source column order"
        ),
        "escape_default_literals": Param(
            default=False,
            type="boolean",
            description="Escape quotes inside column defaults in the generated CREATE TABLE"
        ),
        "echo_rows": Param(
            default=False,
            type="boolean",
            description="Log every copied row"
        ),
        "encoding": Param(
            default="utf-8",
            type="string",
            description="Encoding for byte values; latin-1 passes binary columns through unchanged"
        ),
        "validate_row_count": Param(
            default=True,
            type="boolean",
            description="Compare source and destination row counts after the copy"
        ),
    },
    tags=["migration", "mysql", "table-copy"],
)
def mysql_table_copy():
    """Copy one table's structure and rows between MySQL databases."""

    @task
    def resolve_tables(**context) -> Dict[str, str]:
        """Validate table names and default the destination to the source name."""
        params = context["params"]
        source_table, dest_table = resolve_table_pair(
            params["source_table"], params.get("dest_table")
        )
        logger.info(f"Copying {source_table} -> {dest_table}")
        return {"source_table": source_table, "dest_table": dest_table}

    @task
    def sync_schema(tables: Dict[str, str], **context) -> str:
        """Create the destination table if missing, then check its column order."""
        from mysql_table_copy.odbc_helper import OdbcConnectionHelper
        from mysql_table_copy.ddl_generator import DDLGenerator
        from mysql_table_copy.schema_sync import SchemaSynchronizer
        from mysql_table_copy.validation import MigrationValidator

        params = context["params"]
        source = OdbcConnectionHelper(params["source_conn_id"])
        dest = OdbcConnectionHelper(params["target_conn_id"])

        with source.connection() as source_conn, dest.connection(autocommit=True) as dest_conn:
            synchronizer = SchemaSynchronizer(
                source_conn,
                dest_conn,
                DDLGenerator(escape_default_literals=params["escape_default_literals"]),
            )
            outcome = synchronizer.sync(tables["source_table"], tables["dest_table"])

            if params["verify_column_order"]:
                MigrationValidator(source_conn, dest_conn).ensure_column_order(
                    tables["source_table"], tables["dest_table"]
                )

        context["ti"].xcom_push(key="schema_action", value=outcome.value)
        return outcome.value

    @task
    def copy_rows(tables: Dict[str, str], schema_action: str, **context) -> Dict[str, Any]:
        """Copy every row; per-row insert failures are reported, not raised."""
        from mysql_table_copy.odbc_helper import OdbcConnectionHelper
        from mysql_table_copy.data_transfer import transfer_rows

        params = context["params"]
        source = OdbcConnectionHelper(params["source_conn_id"])
        dest = OdbcConnectionHelper(params["target_conn_id"])

        with source.connection() as source_conn, dest.connection(autocommit=True) as dest_conn:
            stats = transfer_rows(
                source_conn,
                dest_conn,
                tables["source_table"],
                tables["dest_table"],
                echo_rows=params["echo_rows"],
                encoding=params["encoding"],
            )

        result = {**tables, "schema_action": schema_action, **stats.to_dict()}
        context["ti"].xcom_push(key="rows_inserted", value=stats.rows_inserted)
        context["ti"].xcom_push(key="rows_failed", value=stats.rows_failed)
        return result

    @task
    def validate_copy(result: Dict[str, Any], **context) -> Dict[str, Any]:
        """Compare row counts; a mismatch is logged, never raised."""
        params = context["params"]
        if not params["validate_row_count"]:
            logger.info("Row count validation disabled")
            return result

        from mysql_table_copy.odbc_helper import OdbcConnectionHelper
        from mysql_table_copy.validation import MigrationValidator

        source = OdbcConnectionHelper(params["source_conn_id"])
        dest = OdbcConnectionHelper(params["target_conn_id"])

        with source.connection() as source_conn, dest.connection() as dest_conn:
            validation = MigrationValidator(source_conn, dest_conn).validate_row_count(
                result["source_table"], result["dest_table"]
            )

        return {**result, "row_count_validation": validation}

    @task
    def log_copy_summary(result: Dict[str, Any]) -> str:
        """Log summary of the copy."""
        summary = (
            f"Table copy complete: {result['source_table']} -> {result['dest_table']} "
            f"(table {result['schema_action']}), {result['rows_inserted']:,} of "
            f"{result['rows_attempted']:,} rows inserted"
        )
        logger.info(summary)

        for failure in result.get("failures", []):
            logger.warning(f"  Row {failure['row_number']} failed: {failure['error']}")

        return summary

    # Task flow
    tables = resolve_tables()
    schema_action = sync_schema(tables)
    copy_result = copy_rows(tables, schema_action)
    validated = validate_copy(copy_result)
    log_copy_summary(validated)


# Instantiate
mysql_table_copy_dag = mysql_table_copy()
