"""
Statement building for the Greenplum insert and update operators.

Identifiers (schema, table and column names) are checked against the
identifier allow-list before they are interpolated; nothing here binds values.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from gp_ops.python_libs.python.sql_templates import SQLTemplates, validate_identifier

logger = logging.getLogger(__name__)

JOIN_KEY_SEPARATOR = re.compile(r"[ ,]")

STEP_TRUNCATE = "Truncate Target"
STEP_INSERT = "Insert Into"
STEP_UPDATE = "Update FROM"
STEP_ANALYZE = "Analyze Target"


@dataclass(frozen=True)
class TableRef:
    """A schema qualified table reference."""

    schema: str
    table: str

    @property
    def fqn(self) -> str:
        return f"{self.schema}.{self.table}"

    def validated(self, kind: str = "table") -> "TableRef":
        validate_identifier(self.schema, f"{kind} schema")
        validate_identifier(self.table, f"{kind} table")
        return self

    def __str__(self) -> str:
        return self.fqn


@dataclass(frozen=True)
class BuiltStatement:
    """A statement paired with the step name recorded in the ledger."""

    step: str
    sql: str


def parse_join_keys(join_key: str, keep_empty_tokens: bool = False) -> List[str]:
    """Split a join key spec such as ``"col1, col2"`` on spaces and commas.

    Empty tokens are dropped unless ``keep_empty_tokens`` is set, in which case
    every token between two separators is kept (only trailing empty tokens
    are discarded), matching the legacy operator's behaviour.
    """
    tokens = JOIN_KEY_SEPARATOR.split(join_key or "")
    if not keep_empty_tokens:
        return [token for token in tokens if token]

    if len(tokens) == 1:
        return tokens
    while tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def derive_set_columns(source_columns: Sequence[str], join_keys: Iterable[str]) -> List[str]:
    """Source columns that are not part of the join key, in source order."""
    keys = list(join_keys)
    return [column for column in source_columns if column not in keys]


def build_set_clause(set_columns: Sequence[str], source_table: str) -> str:
    """``col = <source_table>.col`` assignments separated by ``" , "``.

    An empty column list gives an empty clause; the UPDATE it ends up in is
    left for the database to reject.
    """
    return " , ".join(f"{column} = {source_table}.{column}" for column in set_columns)


def build_join_predicate(join_keys: Sequence[str], source_table: str, target_table: str) -> str:
    predicate = "1=1"
    for key in join_keys:
        predicate += f" AND {source_table}.{key} = {target_table}.{key}"
    return predicate


class StatementBuilder:
    """Builds the ordered statements run by the insert and update operators."""

    def __init__(self, sql: Optional[SQLTemplates] = None):
        self.sql = sql or SQLTemplates("greenplum")

    def build_insert_statements(
        self,
        source: TableRef,
        target: TableRef,
        *,
        truncate: bool = False,
        analyze: bool = False,
    ) -> List[BuiltStatement]:
        """Truncate (optional), insert-select, analyze (optional), in that order."""
        source.validated("source")
        target.validated("target")

        statements = []
        if truncate:
            statements.append(BuiltStatement(STEP_TRUNCATE, self.sql.render("truncate_table", target=target.fqn)))
        statements.append(
            BuiltStatement(STEP_INSERT, self.sql.render("insert_select", target=target.fqn, source=source.fqn))
        )
        if analyze:
            statements.append(BuiltStatement(STEP_ANALYZE, self.sql.render("analyze_table", target=target.fqn)))
        return statements

    def build_update_statements(
        self,
        source: TableRef,
        target: TableRef,
        source_columns: Sequence[str],
        join_keys: Sequence[str],
        *,
        analyze: bool = False,
        qualify_predicate: bool = False,
    ) -> List[BuiltStatement]:
        """UPDATE ... SET ... FROM ... WHERE, followed by an optional analyze."""
        source.validated("source")
        target.validated("target")
        for key in join_keys:
            validate_identifier(key, "join key column")
        for column in source_columns:
            validate_identifier(column, "source column")

        if qualify_predicate:
            source_name, target_name = source.fqn, target.fqn
        else:
            source_name, target_name = source.table, target.table

        join_predicate = build_join_predicate(join_keys, source_name, target_name)
        set_columns = derive_set_columns(source_columns, join_keys)
        if not set_columns:
            logger.warning(
                f"Every column of {source.fqn} is part of the join key; the UPDATE has nothing to SET"
            )
        set_clause = build_set_clause(set_columns, source_name)

        statements = [
            BuiltStatement(
                STEP_UPDATE,
                self.sql.render(
                    "update_from",
                    target=target.fqn,
                    source=source.fqn,
                    set_clause=set_clause,
                    join_predicate=join_predicate,
                ),
            )
        ]
        if analyze:
            statements.append(BuiltStatement(STEP_ANALYZE, self.sql.render("analyze_table", target=target.fqn)))
        return statements
