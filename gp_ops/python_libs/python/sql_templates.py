import logging
import re

from jinja2 import Environment, exceptions

from gp_ops.python_libs.python.operator_parameters import DataOperatorError

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")


class InvalidIdentifierError(DataOperatorError, ValueError):
    """Raised when a schema, table or column name falls outside the identifier allow-list."""


def validate_identifier(value, kind: str = "identifier") -> str:
    """Return ``value`` unchanged if it is a plain SQL identifier, raise otherwise."""
    if not isinstance(value, str) or not IDENTIFIER_PATTERN.fullmatch(value):
        raise InvalidIdentifierError(f"Invalid {kind} {value!r}: expected letters, digits, '_' or '$'")
    return value


def required_filter(value, var_name=""):
    """Jinja2 filter: raises an error if value is not provided or is falsy."""
    if value is None or (hasattr(value, "__len__") and len(value) == 0):
        raise exceptions.TemplateRuntimeError(f"Required parameter '{var_name or 'unknown'}' was not provided!")
    return value


def qualified_name_filter(value, var_name=""):
    """Jinja2 filter: checks every dot separated part of a (schema qualified) name."""
    required_filter(value, var_name)
    for part in str(value).split("."):
        validate_identifier(part, var_name or "identifier")
    return value


class SQLTemplates:
    """Render SQL templates for the Greenplum operators."""

    TEMPLATES = [
        {
            "dialect": "greenplum",
            "file_name": "check_table_exists.sql.jinja",
            "file_contents": "SELECT count(*) FROM pg_tables WHERE schemaname = %s AND tablename = %s",
        },
        {
            "dialect": "greenplum",
            "file_name": "get_table_columns.sql.jinja",
            "file_contents": "SELECT column_name\nFROM information_schema.columns\nWHERE table_schema = %s\n  AND table_name = %s\nORDER BY ordinal_position",
        },
        {
            "dialect": "greenplum",
            "file_name": "truncate_table.sql.jinja",
            "file_contents": "TRUNCATE TABLE {{ target | qualified('target') }}",
        },
        {
            "dialect": "greenplum",
            "file_name": "insert_select.sql.jinja",
            "file_contents": "INSERT INTO {{ target | qualified('target') }} SELECT * FROM {{ source | qualified('source') }}",
        },
        {
            "dialect": "greenplum",
            "file_name": "update_from.sql.jinja",
            "file_contents": "UPDATE {{ target | qualified('target') }} SET {{ set_clause }} FROM {{ source | qualified('source') }} WHERE {{ join_predicate | required('join_predicate') }}",
        },
        {
            "dialect": "greenplum",
            "file_name": "analyze_table.sql.jinja",
            "file_contents": "ANALYZE {{ target | qualified('target') }}",
        },
    ]

    def __init__(self, dialect: str = "greenplum"):
        self.dialect = dialect
        # Use a Jinja2 Environment to add custom filters
        self.env = Environment()
        self.env.filters["required"] = lambda value, var_name="": required_filter(value, var_name)
        self.env.filters["qualified"] = lambda value, var_name="": qualified_name_filter(value, var_name)

    def get_template(self, template_name: str, dialect: str) -> str:
        """Get the SQL template for the specified dialect."""
        template = next(
            (
                t["file_contents"]
                for t in self.TEMPLATES
                if t["file_name"] == f"{template_name}.sql.jinja" and t["dialect"] == dialect
            ),
            None,
        )
        if not template:
            raise FileNotFoundError(f"Template {template_name} for dialect {dialect} not found.")
        return template

    def render(self, template_name: str, **kwargs) -> str:
        """Render a SQL template with the given parameters."""
        template_str = self.get_template(template_name, self.dialect)
        template = self.env.from_string(template_str)
        rendered_sql = template.render(**kwargs)
        logger.debug(f"Rendered {template_name}: {rendered_sql}")
        return rendered_sql
