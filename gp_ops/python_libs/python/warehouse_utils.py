import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from gp_ops.project_config import ConnectionConfig, load_project_config_object
from gp_ops.python_libs.python.operator_parameters import DataOperatorError
from gp_ops.python_libs.python.sql_templates import SQLTemplates, validate_identifier

logger = logging.getLogger(__name__)


class SourceTableNotFoundError(DataOperatorError):
    """The source table has no columns in information_schema."""


@dataclass(frozen=True)
class BoundSourceTable:
    """A source table bound to an open connection, as handed to an operator."""

    connection: Any
    schema_name: str
    table_name: str
    column_names: tuple[str, ...] = field(default_factory=tuple)


class warehouse_utils:
    """Utilities for running statements against a Greenplum database over a DB-API connection."""

    def __init__(
        self,
        connection: Optional[Any] = None,
        *,
        connection_config: Optional[ConnectionConfig] = None,
        config_dir: Optional[Path] = None,
    ):
        self._connection = connection
        self._owns_connection = False
        self._connection_config = connection_config
        self._config_dir = config_dir
        self.sql = SQLTemplates("greenplum")

    @property
    def connection_config(self) -> ConnectionConfig:
        """Connection settings, loaded from project.yml on first use."""
        if self._connection_config is None:
            self._connection_config = load_project_config_object(self._config_dir).connection
        return self._connection_config

    def get_connection(self):
        """Return the borrowed connection, or open one from the project configuration."""
        if self._connection is None:
            self._connection = self._connect_to_greenplum()
            self._owns_connection = True
        return self._connection

    def close(self) -> None:
        """Close a connection previously opened by ``get_connection``; borrowed connections stay open."""
        if self._connection is not None and self._owns_connection:
            self._connection.close()
            self._connection = None
            self._owns_connection = False

    def _connect_to_greenplum(self):
        """Connect to Greenplum using psycopg2."""
        import psycopg2

        connection_params = self.connection_config.to_connect_kwargs()
        safe_params = {k: v for k, v in connection_params.items() if k != "password"}
        logger.debug(f"Connecting to Greenplum with params: {safe_params}")
        try:
            conn = psycopg2.connect(**connection_params)
        except psycopg2.OperationalError as e:
            error_message = "\n" + "=" * 70 + "\n"
            error_message += "Greenplum Connection Error\n"
            error_message += "=" * 70 + "\n"
            error_message += f"\n{e}\n"
            error_message += "\nCurrent connection parameters:\n"
            error_message += f"   Host: {safe_params.get('host')}\n"
            error_message += f"   Port: {safe_params.get('port')}\n"
            error_message += f"   User: {safe_params.get('user')}\n"
            error_message += f"   Database: {safe_params.get('dbname')}\n"
            error_message += "\nSet them in project.yml or with GREENPLUM_HOST, GREENPLUM_PORT,\n"
            error_message += "GREENPLUM_USER, GREENPLUM_PASSWORD and GREENPLUM_DATABASE.\n"
            error_message += "=" * 70 + "\n"
            logger.error(error_message)
            raise
        logger.debug(f"Successfully connected to Greenplum database: {safe_params.get('dbname')}")
        return conn

    def execute_query(self, conn=None, query: str = None, params: tuple | list | None = None):
        """Execute a read-only query and return its rows as a DataFrame."""
        if not conn:
            conn = self.get_connection()

        logger.debug(f"Executing query: {query}")
        if params:
            logger.debug(f"Query parameters: {params}")

        cursor = conn.cursor()
        try:
            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            rows = cursor.fetchall()
            columns = [d[0] for d in cursor.description] if cursor.description else []
            return pd.DataFrame.from_records(rows, columns=columns)
        except Exception as e:
            logger.error(f"Error executing query: {query}. Error: {e}")
            if params:
                logger.error(f"Query parameters: {params}")
            raise
        finally:
            cursor.close()

    def execute_statement(self, conn=None, statement: str = None, commit: bool = True) -> int:
        """Execute a mutating statement and return its affected row count.

        Drivers report -1 for statements without a row count (TRUNCATE, ANALYZE);
        those are returned as 0.
        """
        if not conn:
            conn = self.get_connection()

        logger.debug(f"Executing statement: {statement}")
        cursor = conn.cursor()
        try:
            cursor.execute(statement)
            rowcount = cursor.rowcount if cursor.rowcount is not None else -1
            if commit:
                conn.commit()
        except Exception as e:
            logger.error(f"Error executing statement: {statement}. Error: {e}")
            print(f"Error executing statement: {statement}. Error: {e}", file=sys.stderr)
            raise
        finally:
            cursor.close()
        return max(rowcount, 0)

    def check_if_table_exists(self, table_name: str, schema_name: str, conn=None) -> bool:
        """Look the table up in the pg_tables catalog view."""
        query = self.sql.render("check_table_exists")
        result = self.execute_query(conn, query, (schema_name, table_name))
        if result is None or result.empty:
            return False
        return int(result.iloc[0, 0]) > 0

    def get_table_columns(self, table_name: str, schema_name: str, conn=None) -> list[str]:
        """Return the column names of a table in ordinal order."""
        query = self.sql.render("get_table_columns")
        result = self.execute_query(conn, query, (schema_name, table_name))
        if result is None or result.empty:
            return []
        return result.iloc[:, 0].tolist()

    def bind_source_table(self, schema_name: str, table_name: str, conn=None) -> BoundSourceTable:
        """Bind a source table to the connection, reading its column list from the catalog."""
        validate_identifier(schema_name, "source schema")
        validate_identifier(table_name, "source table")
        if not conn:
            conn = self.get_connection()
        columns = self.get_table_columns(table_name, schema_name, conn=conn)
        if not columns:
            raise SourceTableNotFoundError(f"Source table '{schema_name}.{table_name}' has no columns or does not exist")
        return BoundSourceTable(
            connection=conn,
            schema_name=schema_name,
            table_name=table_name,
            column_names=tuple(columns),
        )
