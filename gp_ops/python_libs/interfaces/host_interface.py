from __future__ import annotations

from typing import Any, Protocol, Sequence


class SourceTableBinding(Protocol):
    """
    Interface for the upstream table an operator is attached to.

    The host owns the connection; operators borrow it for the duration of a
    run and never open or close it.
    """

    @property
    def connection(self) -> Any:
        """DB-API 2.0 connection positioned against the source database."""
        ...

    @property
    def schema_name(self) -> str:
        """Schema of the source table."""
        ...

    @property
    def table_name(self) -> str:
        """Unqualified name of the source table."""
        ...

    @property
    def column_names(self) -> Sequence[str]:
        """Ordered column names of the source table."""
        ...


class ParameterSource(Protocol):
    """
    Interface for resolving user-entered operator parameters.

    Values are always strings; booleans arrive as "true" or "false".
    """

    def get_parameter(self, name: str) -> str | None:
        """
        Return the value of the named parameter.

        Args:
            name: Display name of the parameter, e.g. "Target Schema"

        Returns:
            The string value, or None when the parameter was not supplied
        """
        ...


class ResultSink(Protocol):
    """
    Interface for receiving an operator's tabular output.
    """

    def accept(
        self,
        title: str,
        column_names: Sequence[str],
        column_types: Sequence[str],
        rows: Sequence[Sequence[str]],
    ) -> None:
        """
        Receive the result table of a completed run.

        Args:
            title: Result title shown by the host
            column_names: Names of the output columns
            column_types: Database types of the output columns
            rows: Result rows in execution order
        """
        ...

