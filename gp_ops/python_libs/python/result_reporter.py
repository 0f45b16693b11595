from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import pandas as pd

from gp_ops.python_libs.interfaces.host_interface import ResultSink

RESULT_COLUMN_NAMES = ("Step", "Result")
RESULT_COLUMN_TYPES = ("text", "text")


@dataclass(frozen=True)
class RunOutcome:
    """Status table produced by an operator run, one row per executed step."""

    title: str
    rows: Tuple[Tuple[str, str], ...]
    column_names: Tuple[str, ...] = RESULT_COLUMN_NAMES
    column_types: Tuple[str, ...] = RESULT_COLUMN_TYPES

    def to_pandas(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows), columns=list(self.column_names))

    def send_to(self, sink: ResultSink) -> None:
        sink.accept(self.title, self.column_names, self.column_types, self.rows)


class ResultReporter:
    """Turns an ordered step ledger into the operator's output table."""

    def __init__(self, title: str):
        self.title = title

    def report(self, steps: Iterable[Tuple[str, str]]) -> RunOutcome:
        return RunOutcome(
            title=self.title,
            rows=tuple((str(step), str(result)) for step, result in steps),
        )
