"""
Pretty printing of built statements using SQLGlot.

Used for dry runs only; the statements that are executed are always the
rendered template text.
"""

import logging

import sqlglot
from sqlglot.errors import SqlglotError

logger = logging.getLogger(__name__)


def format_sql(sql: str, dialect: str = "postgres") -> str:
    """Return ``sql`` pretty printed, or unchanged when SQLGlot cannot parse it."""
    try:
        formatted = sqlglot.transpile(sql, read=dialect, write=dialect, pretty=True)
    except SqlglotError as e:
        logger.warning(f"SQL formatting failed: {e}")
        logger.warning(f"Returning original SQL: {sql}")
        return sql
    return ";\n".join(formatted) if formatted else sql
