"""
Tests for the mysql_table_copy DAG definition.
"""

import os
import sys
import pytest

pytest.importorskip("airflow")

# Add project root and plugins directory to path (Airflow does this at runtime)
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
for path in (ROOT_DIR, os.path.join(ROOT_DIR, 'plugins')):
    if path not in sys.path:
        sys.path.insert(0, path)

from airflow.models import DagBag


@pytest.fixture(scope="module")
def dag_bag():
    return DagBag(dag_folder=os.path.join(ROOT_DIR, "dags"), include_examples=False)


@pytest.fixture(scope="module")
def dag(dag_bag):
    dag = dag_bag.get_dag("mysql_table_copy")
    assert dag is not None, dag_bag.import_errors
    return dag


class TestTableCopyDag:

    def test_no_import_errors(self, dag_bag):
        assert dag_bag.import_errors == {}

    def test_expected_params(self, dag):
        for param in [
            "source_conn_id",
            "target_conn_id",
            "source_table",
            "dest_table",
            "verify_column_order",
            "escape_default_literals",
            "echo_rows",
            "encoding",
            "validate_row_count",
        ]:
            assert param in dag.params, f"Missing expected parameter: {param}"

    def test_task_order(self, dag):
        task_ids = {task.task_id for task in dag.tasks}
        assert task_ids == {
            "resolve_tables",
            "sync_schema",
            "copy_rows",
            "validate_copy",
            "log_copy_summary",
        }

        assert "sync_schema" in dag.get_task("resolve_tables").downstream_task_ids
        assert "copy_rows" in dag.get_task("sync_schema").downstream_task_ids
        assert "validate_copy" in dag.get_task("copy_rows").downstream_task_ids
        assert "log_copy_summary" in dag.get_task("validate_copy").downstream_task_ids

    def test_no_retries(self, dag):
        assert all(task.retries == 0 for task in dag.tasks)
