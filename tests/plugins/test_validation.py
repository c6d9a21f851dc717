"""
Tests for Table Copy Validation Module

These tests validate the column order check that guards the positional
insert, and the post-copy row count comparison.
"""

import pytest
from unittest.mock import MagicMock
from mysql_table_copy.errors import ColumnOrderMismatchError
from mysql_table_copy.validation import MigrationValidator


def describe_rows(*names):
    return [(name, 'int', 'YES', '', None, '') for name in names]


def make_connection(describe=None, count=None):
    """Connection whose cursor answers DESCRIBE with fetchall and COUNT(*) with fetchone."""
    cursor = MagicMock()
    cursor.fetchall.return_value = describe or []
    cursor.fetchone.return_value = (count,) if count is not None else None
    conn = MagicMock()
    conn.cursor.return_value = cursor
    return conn, cursor


class TestColumnOrder:

    def test_matching_columns(self):
        source, _ = make_connection(describe_rows('id', 'name', 'created_at'))
        dest, _ = make_connection(describe_rows('id', 'name', 'created_at'))

        result = MigrationValidator(source, dest).validate_column_order('users', 'users_copy')

        assert result['validation_passed'] is True
        assert result['mismatches'] == []
        assert result['source_columns'] == ['id', 'name', 'created_at']

    def test_case_insensitive(self):
        source, _ = make_connection(describe_rows('id', 'Name'))
        dest, _ = make_connection(describe_rows('ID', 'name'))

        result = MigrationValidator(source, dest).validate_column_order('users', 'users_copy')

        assert result['validation_passed'] is True

    def test_reordered_columns(self):
        source, _ = make_connection(describe_rows('id', 'name', 'email'))
        dest, _ = make_connection(describe_rows('id', 'email', 'name'))

        result = MigrationValidator(source, dest).validate_column_order('users', 'users_copy')

        assert result['validation_passed'] is False
        assert result['mismatches'] == [
            {'position': 2, 'source_column': 'name', 'dest_column': 'email'},
            {'position': 3, 'source_column': 'email', 'dest_column': 'name'},
        ]

    def test_extra_destination_column(self):
        source, _ = make_connection(describe_rows('id'))
        dest, _ = make_connection(describe_rows('id', 'archived_at'))

        result = MigrationValidator(source, dest).validate_column_order('users', 'users_copy')

        assert result['mismatches'] == [
            {'position': 2, 'source_column': None, 'dest_column': 'archived_at'},
        ]

    def test_ensure_raises_on_mismatch(self):
        source, _ = make_connection(describe_rows('id', 'name'))
        dest, _ = make_connection(describe_rows('name', 'id'))

        with pytest.raises(ColumnOrderMismatchError) as exc_info:
            MigrationValidator(source, dest).ensure_column_order('users', 'users_copy')

        error = exc_info.value
        assert error.table_name == 'users_copy'
        assert error.source_columns == ['id', 'name']
        assert error.dest_columns == ['name', 'id']
        assert 'position 1' in str(error)

    def test_ensure_passes_silently(self):
        source, _ = make_connection(describe_rows('id'))
        dest, _ = make_connection(describe_rows('id'))

        assert MigrationValidator(source, dest).ensure_column_order('users', 'users_copy') is None


class TestRowCount:

    def test_counts_match(self):
        source, source_cursor = make_connection(count=1000)
        dest, _ = make_connection(count=1000)

        result = MigrationValidator(source, dest).validate_row_count('users', 'users_copy')

        assert result['validation_passed'] is True
        assert result['source_count'] == 1000
        assert result['dest_count'] == 1000
        assert result['row_difference'] == 0
        assert result['percentage_difference'] == 0
        source_cursor.execute.assert_called_once_with('SELECT COUNT(*) FROM `users`')
        source_cursor.close.assert_called_once()

    def test_counts_mismatch(self):
        source, _ = make_connection(count=1000)
        dest, _ = make_connection(count=950)

        result = MigrationValidator(source, dest).validate_row_count('users', 'users_copy')

        assert result['validation_passed'] is False
        assert result['row_difference'] == -50
        assert result['percentage_difference'] == -5.0

    def test_empty_source(self):
        source, _ = make_connection(count=0)
        dest, _ = make_connection(count=0)

        result = MigrationValidator(source, dest).validate_row_count('users', 'users_copy')

        assert result['validation_passed'] is True
        assert result['percentage_difference'] == 0

    def test_qualified_table_is_quoted(self):
        source, _ = make_connection(count=1)
        dest, dest_cursor = make_connection(count=1)

        MigrationValidator(source, dest).validate_row_count('users', 'archive.users')

        dest_cursor.execute.assert_called_once_with('SELECT COUNT(*) FROM `archive`.`users`')

    def test_invalid_table_name(self):
        source, source_cursor = make_connection(count=1)
        dest, _ = make_connection(count=1)

        with pytest.raises(ValueError):
            MigrationValidator(source, dest).validate_row_count('users; DROP TABLE users', 'users')

        source_cursor.execute.assert_not_called()
