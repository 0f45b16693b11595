import logging
from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional, Sequence

from gp_ops.python_libs.python.statement_builder import BuiltStatement
from gp_ops.python_libs.python.warehouse_utils import warehouse_utils

logger = logging.getLogger(__name__)


class StepResult(NamedTuple):
    step: str
    result: str


@dataclass
class StepExecutor:
    """Runs built statements one after another on a single borrowed connection.

    By default every statement is committed as soon as it succeeds, so a
    failure leaves earlier steps in place; the failed statement itself is
    rolled back so the borrowed connection is usable again. With ``atomic=True`` the statements
    share one transaction that is committed after the last step and rolled
    back if any step fails.
    """

    connection: Any
    atomic: bool = False
    utils: Optional[warehouse_utils] = None

    def __post_init__(self):
        if self.utils is None:
            self.utils = warehouse_utils(self.connection)

    def execute(self, statements: Sequence[BuiltStatement]) -> List[StepResult]:
        results: List[StepResult] = []
        try:
            for statement in statements:
                logger.info(f"Running step '{statement.step}'")
                rowcount = self.utils.execute_statement(
                    self.connection, statement.sql, commit=not self.atomic
                )
                results.append(StepResult(statement.step, str(rowcount)))
                logger.info(f"Step '{statement.step}' finished: {rowcount}")
            if self.atomic:
                self.connection.commit()
        except Exception:
            if self.atomic:
                logger.warning("Rolling back all steps of this run")
            else:
                # Only the failed statement is rolled back; earlier steps are already committed
                logger.warning(f"Run aborted after {len(results)} committed step(s)")
            self.connection.rollback()
            raise
        return results
