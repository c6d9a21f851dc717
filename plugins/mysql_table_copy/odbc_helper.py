"""
ODBC Connection Helper

This module opens MySQL connections through pyodbc, configured either from an
Airflow connection ID (via BaseHook) or from explicit parameters.
"""

from contextlib import contextmanager
from typing import Iterator, Optional
from airflow.hooks.base import BaseHook
import logging
import os
import pyodbc

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = '{MySQL ODBC 8.0 Unicode Driver}'
DEFAULT_PORT = 3306


def get_odbc_driver() -> str:
    """ODBC driver name from MYSQL_ODBC_DRIVER, braces added when missing."""
    driver = os.environ.get('MYSQL_ODBC_DRIVER', '').strip()
    if not driver:
        return DEFAULT_DRIVER
    if not driver.startswith('{'):
        driver = f"{{{driver}}}"
    return driver


class OdbcConnectionHelper:
    """
    Helper class for ODBC connections to a MySQL-family server.

    Connection details come from an Airflow connection (host, port, schema as
    the database, login, password) unless set explicitly with from_params().
    """

    def __init__(self, odbc_conn_id: Optional[str] = None):
        """
        Initialize the ODBC connection helper.

        Args:
            odbc_conn_id: Airflow connection ID for the database
        """
        self.conn_id = odbc_conn_id
        self._conn_config = None

    @classmethod
    def from_params(
        cls,
        host: str,
        database: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        port: Optional[int] = None
    ) -> "OdbcConnectionHelper":
        """
        Build a helper from explicit connection parameters, bypassing Airflow.

        Args:
            host: Server host name or address
            database: Database name
            user: Login name
            password: Password
            port: Server port (default 3306)

        Returns:
            Configured OdbcConnectionHelper
        """
        helper = cls()
        helper._conn_config = cls._make_config(host, port, database, user, password)
        return helper

    @staticmethod
    def _make_config(host, port, database, user, password) -> dict:
        config = {
            'DRIVER': get_odbc_driver(),
            'SERVER': host,
            'PORT': str(port or DEFAULT_PORT),
            'DATABASE': database,
            'CHARSET': 'utf8mb4',
        }
        if user:
            config['UID'] = user
            config['PWD'] = password or ''
        return config

    def _get_connection_config(self) -> dict:
        """
        Get connection configuration from Airflow connection.

        Returns:
            Dictionary with ODBC connection parameters
        """
        if self._conn_config is None:
            if not self.conn_id:
                raise ValueError("No Airflow connection ID or explicit parameters configured")

            conn = BaseHook.get_connection(self.conn_id)
            if not conn.schema:
                raise ValueError(
                    f"Connection '{self.conn_id}' has no database configured. "
                    f"Set the connection schema to the database name."
                )

            self._conn_config = self._make_config(
                conn.host, conn.port, conn.schema, conn.login, conn.password
            )

        return self._conn_config

    def _build_connection_string(self) -> str:
        """
        Build ODBC connection string from configuration.

        Returns:
            ODBC connection string
        """
        config = self._get_connection_config()
        return ';'.join([f"{k}={v}" for k, v in config.items() if v])

    @property
    def database(self) -> str:
        return self._get_connection_config()['DATABASE']

    def describe(self) -> str:
        """Connection target for log messages, without credentials."""
        config = self._get_connection_config()
        return f"{config['SERVER']}:{config['PORT']}/{config['DATABASE']}"

    def get_conn(self, autocommit: bool = False) -> pyodbc.Connection:
        """
        Get a pyodbc connection to the database.

        Args:
            autocommit: Open the connection in autocommit mode

        Returns:
            pyodbc Connection object
        """
        conn_str = self._build_connection_string()
        logger.debug(f"Opening ODBC connection to {self.describe()} (autocommit={autocommit})")
        return pyodbc.connect(conn_str, autocommit=autocommit)

    def release_conn(self, conn: pyodbc.Connection) -> None:
        """
        Close a connection, ignoring None.

        Args:
            conn: Connection to release
        """
        if conn is None:
            return
        conn.close()

    @contextmanager
    def connection(self, autocommit: bool = False) -> Iterator[pyodbc.Connection]:
        """Open a connection for the duration of a with-block."""
        conn = self.get_conn(autocommit=autocommit)
        try:
            yield conn
        finally:
            self.release_conn(conn)
