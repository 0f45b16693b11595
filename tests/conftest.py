import re
import sys
import types
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from gp_ops.python_libs.python.warehouse_utils import BoundSourceTable  # noqa: E402


class FakeDatabaseError(Exception):
    """Stands in for a driver error raised by the database."""


TRUNCATE_RE = re.compile(r"^TRUNCATE TABLE (\S+)$")
INSERT_RE = re.compile(r"^INSERT INTO (\S+) SELECT \* FROM (\S+)$")
UPDATE_RE = re.compile(r"^UPDATE (\S+) SET (.*) FROM (\S+) WHERE (.+)$")
ANALYZE_RE = re.compile(r"^ANALYZE (\S+)$")


class FakeCursor:
    def __init__(self, connection: "FakeConnection"):
        self.connection = connection
        self.description = None
        self.rowcount = -1
        self._rows: list[tuple] = []
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> None:
        self.connection.executed.append((sql, params))
        if self.connection.aborted:
            raise FakeDatabaseError("current transaction is aborted, commands ignored until end of transaction block")
        try:
            self._execute(sql, params)
        except FakeDatabaseError:
            self.connection.aborted = True
            raise

    def _execute(self, sql: str, params: Any) -> None:
        for fragment in self.connection.fail_on:
            if fragment in sql:
                raise FakeDatabaseError(f"forced failure on: {sql}")

        if "FROM pg_tables" in sql:
            schema_name, table_name = params
            exists = f"{schema_name}.{table_name}" in self.connection.tables
            self._result([(1 if exists else 0,)], "count")
        elif "FROM information_schema.columns" in sql:
            schema_name, table_name = params
            columns = self.connection.columns.get(f"{schema_name}.{table_name}", [])
            self._result([(column,) for column in columns], "column_name")
        else:
            self._mutate(sql)

    def _result(self, rows: list[tuple], column: str) -> None:
        self._rows = rows
        self.description = [(column, None, None, None, None, None, None)]
        self.rowcount = len(rows)

    def _mutate(self, sql: str) -> None:
        self.description = None
        tables = self.connection.tables
        if match := TRUNCATE_RE.match(sql):
            tables[match.group(1)] = 0
            self.rowcount = -1
        elif match := INSERT_RE.match(sql):
            target, source = match.groups()
            tables[target] = tables.get(target, 0) + tables.get(source, 0)
            self.rowcount = tables.get(source, 0)
        elif match := UPDATE_RE.match(sql):
            target, set_clause, source, _ = match.groups()
            if not set_clause.strip():
                raise FakeDatabaseError('syntax error at or near "FROM"')
            self.rowcount = min(tables.get(target, 0), tables.get(source, 0))
        elif ANALYZE_RE.match(sql):
            self.rowcount = -1
        else:
            raise FakeDatabaseError(f"syntax error in: {sql}")

    def fetchall(self) -> list[tuple]:
        return list(self._rows)

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """In-memory DB-API connection that tracks row counts per table.

    Row counts changed since the last commit are thrown away by ``rollback``.
    A failed statement leaves the connection ``aborted`` until it is rolled back.
    """

    def __init__(self, tables: dict[str, int] | None = None, columns: dict[str, list[str]] | None = None):
        self.tables: dict[str, int] = dict(tables or {})
        self.columns: dict[str, list[str]] = dict(columns or {})
        self._committed = dict(self.tables)
        self.executed: list[tuple[str, Any]] = []
        self.fail_on: list[str] = []
        self.commits = 0
        self.rollbacks = 0
        self.aborted = False
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1
        self._committed = dict(self.tables)

    def rollback(self) -> None:
        self.rollbacks += 1
        self.aborted = False
        self.tables = dict(self._committed)

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> list[str]:
        """Executed SQL text without the catalog lookups."""
        return [sql for sql, _ in self.executed if "pg_tables" not in sql and "information_schema" not in sql]


class RecordingSink:
    def __init__(self):
        self.received = []

    def accept(self, title, column_names, column_types, rows):
        self.received.append(
            types.SimpleNamespace(title=title, column_names=column_names, column_types=column_types, rows=rows)
        )


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection(
        tables={"stage.orders_src": 5, "edw.orders": 3},
        columns={
            "stage.orders_src": ["id", "customer_id", "amount"],
            "edw.orders": ["id", "customer_id", "amount"],
        },
    )


@pytest.fixture
def orders_source(fake_connection) -> BoundSourceTable:
    return BoundSourceTable(
        connection=fake_connection,
        schema_name="stage",
        table_name="orders_src",
        column_names=("id", "customer_id", "amount"),
    )


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()
