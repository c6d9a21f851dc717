#!/usr/bin/env python3
"""
MySQL Table Copy command line entry point.

Copies one table between two MySQL-family servers outside Airflow.

Byte values (BLOB, VARBINARY, BINARY columns) are decoded to text with
--encoding before insertion. With the default utf-8, a value that is not valid
UTF-8 aborts the copy at that row; --encoding latin-1 carries any byte
sequence through unchanged.

Usage:
    mysql-table-copy --source-host 10.0.0.5 --dest-host 10.0.0.6:3307 \\
        --source-db shop --dest-db shop_archive \\
        --source-table users --dest-table users_2024
"""

import argparse
import codecs
import logging
import os
import sys
from typing import List, Optional, Tuple

from mysql_table_copy.errors import TableCopyError
from mysql_table_copy.pipeline import copy_table
from mysql_table_copy.table_config import resolve_table_pair

logger = logging.getLogger(__name__)


def split_host(value: str) -> Tuple[str, Optional[int]]:
    """
    Split 'host' or 'host:port' into its parts.

    A missing port comes back as None so the connection default applies.

    Examples:
        >>> split_host("10.0.0.5")
        ('10.0.0.5', None)
        >>> split_host("db.internal:3307")
        ('db.internal', 3307)
    """
    host, sep, port = value.rpartition(':')
    if not sep:
        return value, None
    if not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"Invalid host '{value}': expected host or host:port")
    return host, int(port)


def encoding_name(value: str) -> str:
    try:
        return codecs.lookup(value).name
    except LookupError:
        raise argparse.ArgumentTypeError(f"Unknown encoding '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mysql-table-copy",
        description="Copy a table's structure and rows between MySQL databases",
    )
    parser.add_argument("--source-host", required=True, type=split_host,
                        help="Source database server, host or host:port")
    parser.add_argument("--dest-host", required=True, type=split_host,
                        help="Destination database server, host or host:port")
    parser.add_argument("--source-db", required=True, help="Name of the source database")
    parser.add_argument("--dest-db", required=True, help="Name of the destination database")
    parser.add_argument("--source-table", required=True, help="Name of the source table")
    parser.add_argument("--dest-table", help="Name of the destination table (defaults to the source table)")
    parser.add_argument("--db-user", default="root", help="Database user")
    parser.add_argument("--db-password", default=os.environ.get("DB_PASSWORD", "password"),
                        help="Database password (default from DB_PASSWORD)")
    parser.add_argument("--encoding", default="utf-8", type=encoding_name,
                        help="Encoding used to turn byte values into text. Undecodable bytes abort "
                             "the copy; use latin-1 to pass binary columns through unchanged")
    parser.add_argument("--escape-default-literals", action="store_true",
                        help="Escape quotes inside column default values in the generated DDL")
    parser.add_argument("--no-verify-column-order", dest="verify_column_order", action="store_false",
                        help="Skip the destination column order check before copying")
    parser.add_argument("--echo-rows", action="store_true", help="Log every copied row")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        source_table, dest_table = resolve_table_pair(args.source_table, args.dest_table)
    except ValueError as e:
        logger.error(f"Invalid table name: {e}")
        return 1

    from mysql_table_copy.odbc_helper import OdbcConnectionHelper

    source_host, source_port = args.source_host
    dest_host, dest_port = args.dest_host
    source = OdbcConnectionHelper.from_params(
        source_host, args.source_db, args.db_user, args.db_password, source_port
    )
    dest = OdbcConnectionHelper.from_params(
        dest_host, args.dest_db, args.db_user, args.db_password, dest_port
    )

    try:
        source_conn = source.get_conn()
    except Exception as e:
        logger.error(f"Error connecting to source database {source.describe()}: {e}")
        return 1

    try:
        dest_conn = dest.get_conn(autocommit=True)
    except Exception as e:
        logger.error(f"Error connecting to destination database {dest.describe()}: {e}")
        source.release_conn(source_conn)
        return 1

    try:
        result = copy_table(
            source_conn,
            dest_conn,
            source_table,
            dest_table,
            escape_default_literals=args.escape_default_literals,
            verify_column_order=args.verify_column_order,
            echo_rows=args.echo_rows,
            encoding=args.encoding,
        )
    except TableCopyError as e:
        if e.stats is not None:
            logger.error(f"Copy aborted after {e.stats.rows_inserted:,} inserted rows: {e}")
        else:
            logger.error(f"Copy failed: {e}")
        return 1
    finally:
        source.release_conn(source_conn)
        dest.release_conn(dest_conn)

    print(f"Total rows migrated: {result['rows_inserted']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
