from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import psycopg2
import typer
from rich.console import Console

from gp_ops.cli_utils.console_styles import ConsoleStyles
from gp_ops.cli_utils.display_utils import PanelBuilder, TableBuilder
from gp_ops.python_libs.python.data_operators import GreenplumDataOperator
from gp_ops.python_libs.python.operator_parameters import DataOperatorError, DictParameterSource
from gp_ops.python_libs.python.result_reporter import RunOutcome
from gp_ops.python_libs.python.warehouse_utils import warehouse_utils

logger = logging.getLogger(__name__)

console = Console()


def run_operator(
    operator: GreenplumDataOperator,
    source_schema: str,
    source_table: str,
    parameters: DictParameterSource,
    *,
    config_dir: Optional[Path] = None,
    dry_run: bool = False,
) -> Optional[RunOutcome]:
    """
    Bind the source table, then run (or only plan) the operator and print the outcome.

    The connection is opened from the project configuration and closed again
    when the command finishes.
    """
    utils = warehouse_utils(config_dir=config_dir)
    try:
        conn = utils.get_connection()
        source = utils.bind_source_table(source_schema, source_table, conn=conn)
        ConsoleStyles.print_info(
            console,
            f"{operator.metadata.name}: {source_schema}.{source_table} "
            f"({len(source.column_names)} columns)",
        )

        if dry_run:
            statements = operator.plan(source, parameters)
            PanelBuilder(console).create_statements_panel(statements)
            ConsoleStyles.print_warning(console, "Dry run: no statements were executed.")
            return None

        outcome = operator.run(source, parameters)
        TableBuilder(console).create_outcome_table(outcome)
        ConsoleStyles.print_success(console, f"✓ {operator.metadata.name} completed")
        return outcome
    except (DataOperatorError, psycopg2.Error) as e:
        logger.error(f"{operator.metadata.name} failed: {e}")
        ConsoleStyles.print_error(console, f"✗ {operator.metadata.name} failed: {e}")
        raise typer.Exit(code=1)
    finally:
        utils.close()
