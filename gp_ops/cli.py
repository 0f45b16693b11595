from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from gp_ops.cli_utils import operator_commands
from gp_ops.python_libs.python.data_operators import (
    GreenplumInsertOperator,
    GreenplumUpdateOperator,
)
from gp_ops.python_libs.python.operator_parameters import (
    P_JOIN_KEY,
    P_TARGET_ANALYZE,
    P_TARGET_SCHEMA,
    P_TARGET_TABLE,
    P_TARGET_TRUNCATE,
    DictParameterSource,
)


app = typer.Typer(no_args_is_help=True, pretty_exceptions_show_locals=False)

SourceSchemaOption = Annotated[str, typer.Option("--source-schema", "-ss", help="Schema of the source table")]
SourceTableOption = Annotated[str, typer.Option("--source-table", "-st", help="Source table to read from")]
TargetSchemaOption = Annotated[str, typer.Option("--target-schema", "-ts", help="Schema of the target table")]
TargetTableOption = Annotated[str, typer.Option("--target-table", "-tt", help="Existing target table")]
AnalyzeOption = Annotated[bool, typer.Option("--analyze/--no-analyze", help="ANALYZE the target afterwards")]
AtomicOption = Annotated[
    bool,
    typer.Option(
        "--atomic/--per-step-commit",
        help="Run all steps in one transaction instead of committing after each step",
    ),
]
DryRunOption = Annotated[bool, typer.Option("--dry-run", help="Check the target and print the statements only")]
ConfigDirOption = Annotated[
    Optional[Path],
    typer.Option("--config-dir", "-c", help="Directory (or file) holding project.yml"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every statement")] = False,
):
    """Greenplum insert and update operators."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@app.command()
def insert(
    source_schema: SourceSchemaOption,
    source_table: SourceTableOption,
    target_schema: TargetSchemaOption,
    target_table: TargetTableOption,
    truncate: Annotated[bool, typer.Option("--truncate/--no-truncate", help="TRUNCATE the target first")] = False,
    analyze: AnalyzeOption = False,
    atomic: AtomicOption = False,
    dry_run: DryRunOption = False,
    config_dir: ConfigDirOption = None,
):
    """Insert every row of the source table into the target table."""
    parameters = DictParameterSource(
        {
            P_TARGET_SCHEMA: target_schema,
            P_TARGET_TABLE: target_table,
            P_TARGET_TRUNCATE: truncate,
            P_TARGET_ANALYZE: analyze,
        }
    )
    operator_commands.run_operator(
        GreenplumInsertOperator(atomic=atomic),
        source_schema,
        source_table,
        parameters,
        config_dir=config_dir,
        dry_run=dry_run,
    )


@app.command()
def update(
    source_schema: SourceSchemaOption,
    source_table: SourceTableOption,
    target_schema: TargetSchemaOption,
    target_table: TargetTableOption,
    join_key: Annotated[str, typer.Option("--join-key", "-k", help="Join key columns, e.g. 'col1,col2'")],
    analyze: AnalyzeOption = False,
    qualify_predicate: Annotated[
        bool,
        typer.Option("--qualify-predicate", help="Use schema qualified names in the SET list and join predicate"),
    ] = False,
    keep_empty_tokens: Annotated[
        bool,
        typer.Option("--keep-empty-tokens", help="Do not drop empty join key tokens such as in 'a,,b'"),
    ] = False,
    atomic: AtomicOption = False,
    dry_run: DryRunOption = False,
    config_dir: ConfigDirOption = None,
):
    """Update the target table from the source table, matching rows on the join key."""
    parameters = DictParameterSource(
        {
            P_TARGET_SCHEMA: target_schema,
            P_TARGET_TABLE: target_table,
            P_JOIN_KEY: join_key,
            P_TARGET_ANALYZE: analyze,
        }
    )
    operator_commands.run_operator(
        GreenplumUpdateOperator(
            atomic=atomic,
            qualify_predicate=qualify_predicate,
            keep_empty_tokens=keep_empty_tokens,
        ),
        source_schema,
        source_table,
        parameters,
        config_dir=config_dir,
        dry_run=dry_run,
    )


if __name__ == "__main__":
    app()
