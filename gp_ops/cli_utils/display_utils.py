from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from gp_ops.python_libs.python.result_reporter import RunOutcome
from gp_ops.python_libs.python.sql_formatter import format_sql
from gp_ops.python_libs.python.statement_builder import BuiltStatement


class TableBuilder:
    """
    Utility for building and displaying result tables.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def create_outcome_table(
        self,
        outcome: RunOutcome,
        title_style: str = "bold blue",
        border_style: str = "blue",
    ) -> Table:
        """Create and display the (Step, Result) table of a run."""
        table = Table(
            title=f"[{title_style}]{outcome.title}[/{title_style}]",
            border_style=border_style,
        )
        step_column, result_column = outcome.column_names
        table.add_column(step_column, style="cyan", no_wrap=True)
        table.add_column(result_column, style="green", justify="right")
        for step, result in outcome.rows:
            table.add_row(step, result)

        self.console.print(table)
        return table


class PanelBuilder:
    """
    Utility for building and displaying panels.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def create_statements_panel(
        self,
        statements: Sequence[BuiltStatement],
        title: str = "Planned Statements",
        border_style: str = "yellow",
    ) -> None:
        """Display each planned statement, pretty printed, under its step name."""
        for index, statement in enumerate(statements, start=1):
            panel = Panel(
                Syntax(format_sql(statement.sql), "sql", word_wrap=True),
                title=f"[bold]{title} {index}/{len(statements)}: {statement.step}[/bold]",
                title_align="left",
                border_style=border_style,
            )
            self.console.print(panel)
