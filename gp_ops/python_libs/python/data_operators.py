"""
Greenplum data operators.

Two operators share one shape: check that the target table exists, build the
statements, run them in order on the source table's connection and report a
(Step, Result) ledger.

* ``GreenplumInsertOperator``: optional TRUNCATE, INSERT ... SELECT * and an
  optional ANALYZE of the target.
* ``GreenplumUpdateOperator``: UPDATE ... SET ... FROM ... WHERE keyed on the
  join key columns, then an optional ANALYZE.

Neither operator checks that source and target columns line up; mismatches
surface as database errors while the steps run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from gp_ops.python_libs.interfaces.host_interface import (
    ParameterSource,
    ResultSink,
    SourceTableBinding,
)
from gp_ops.python_libs.python.operator_parameters import (
    P_JOIN_KEY,
    P_TARGET_ANALYZE,
    P_TARGET_SCHEMA,
    P_TARGET_TABLE,
    P_TARGET_TRUNCATE,
    DataOperatorError,
    EmptyJoinKeyError,
    OperatorParameter,
    ParameterError,
    parse_bool,
    resolve_parameter,
    validate_parameters,
)
from gp_ops.python_libs.python.result_reporter import ResultReporter, RunOutcome
from gp_ops.python_libs.python.statement_builder import (
    BuiltStatement,
    StatementBuilder,
    TableRef,
    parse_join_keys,
)
from gp_ops.python_libs.python.step_executor import StepExecutor, StepResult
from gp_ops.python_libs.python.warehouse_utils import warehouse_utils

logger = logging.getLogger(__name__)

STEP_TARGET_EXISTS = "Target Exists"


class TargetTableNotFoundError(DataOperatorError):
    """The configured target table is missing from the catalog."""

    def __init__(self, target: TableRef):
        self.target = target
        super().__init__(f"Target table '{target.fqn}' does not exist")


@dataclass(frozen=True)
class OperatorMetaData:
    group: str
    author: str
    version: int
    name: str
    description: str
    supported_platforms: Tuple[str, ...] = ("Greenplum",)


class PreconditionChecker:
    """Confirms the target table exists before anything is built or run."""

    def __init__(self, utils: warehouse_utils):
        self.utils = utils

    def check(self, connection, target: TableRef) -> StepResult:
        target.validated("target")
        exists = self.utils.check_if_table_exists(target.table, target.schema, conn=connection)
        if not exists:
            logger.error(f"Target table '{target.fqn}' not found in pg_tables")
            raise TargetTableNotFoundError(target)
        logger.info(f"Target table '{target.fqn}' exists")
        return StepResult(STEP_TARGET_EXISTS, "true")


@dataclass
class GreenplumDataOperator(ABC):
    """Shared run sequence: check target, build statements, execute, report.

    Concrete operators set ``metadata`` and ``result_title`` and implement ``_build``.
    """

    atomic: bool = False
    builder: StatementBuilder = field(default_factory=StatementBuilder)

    result_title = "Greenplum Result"

    @property
    @abstractmethod
    def metadata(self) -> OperatorMetaData:
        """Display metadata of the operator."""

    def get_parameters(self) -> List[OperatorParameter]:
        return [
            OperatorParameter(P_TARGET_SCHEMA),
            OperatorParameter(P_TARGET_TABLE),
        ]

    def validate_parameters(self, parameters: ParameterSource) -> List[str]:
        return validate_parameters(parameters, self.get_parameters())

    def _require_valid_parameters(self, parameters: ParameterSource) -> None:
        messages = self.validate_parameters(parameters)
        if messages:
            raise ParameterError("; ".join(messages))

    def _parameter(self, parameters: ParameterSource, name: str) -> Optional[str]:
        declaration = next(p for p in self.get_parameters() if p.name == name)
        return resolve_parameter(parameters, declaration)

    def _flag(self, parameters: ParameterSource, name: str) -> bool:
        return parse_bool(self._parameter(parameters, name), name)

    def resolve_target(self, parameters: ParameterSource) -> TableRef:
        return TableRef(
            self._parameter(parameters, P_TARGET_SCHEMA).strip(),
            self._parameter(parameters, P_TARGET_TABLE).strip(),
        )

    @staticmethod
    def resolve_source(source: SourceTableBinding) -> TableRef:
        return TableRef(source.schema_name, source.table_name)

    @abstractmethod
    def _build(self, source: SourceTableBinding, parameters: ParameterSource, target: TableRef) -> List[BuiltStatement]:
        """Build the mutating statements against an already resolved target."""

    def build_statements(self, source: SourceTableBinding, parameters: ParameterSource) -> List[BuiltStatement]:
        """Build the mutating statements for a run without checking or executing anything."""
        self._require_valid_parameters(parameters)
        return self._build(source, parameters, self.resolve_target(parameters))

    def plan(self, source: SourceTableBinding, parameters: ParameterSource) -> List[BuiltStatement]:
        """Check the target exists, then build the statements without running them."""
        self._require_valid_parameters(parameters)
        target = self.resolve_target(parameters)
        utils = warehouse_utils(source.connection)
        PreconditionChecker(utils).check(source.connection, target)
        return self._build(source, parameters, target)

    def run(
        self,
        source: SourceTableBinding,
        parameters: ParameterSource,
        sink: Optional[ResultSink] = None,
    ) -> RunOutcome:
        self._require_valid_parameters(parameters)
        connection = source.connection
        utils = warehouse_utils(connection)
        target = self.resolve_target(parameters)
        logger.info(f"{self.metadata.name}: {self.resolve_source(source).fqn} -> {target.fqn}")

        ledger: List[StepResult] = [PreconditionChecker(utils).check(connection, target)]
        statements = self._build(source, parameters, target)
        executor = StepExecutor(connection, atomic=self.atomic, utils=utils)
        ledger.extend(executor.execute(statements))

        outcome = ResultReporter(self.result_title).report(ledger)
        if sink is not None:
            outcome.send_to(sink)
        return outcome


@dataclass
class GreenplumInsertOperator(GreenplumDataOperator):
    """Insert the source table's rows into an existing target table."""

    metadata = OperatorMetaData(
        group="Greenplum Data Operators",
        author="Dillon Woods",
        version=1,
        name="Greenplum Insert Into",
        description="Greenplum Insert Into",
    )
    result_title = "Greenplum Insert Result"

    def get_parameters(self) -> List[OperatorParameter]:
        return super().get_parameters() + [
            OperatorParameter.boolean(P_TARGET_TRUNCATE),
            OperatorParameter.boolean(P_TARGET_ANALYZE),
        ]

    def _build(self, source, parameters, target) -> List[BuiltStatement]:
        return self.builder.build_insert_statements(
            self.resolve_source(source),
            target,
            truncate=self._flag(parameters, P_TARGET_TRUNCATE),
            analyze=self._flag(parameters, P_TARGET_ANALYZE),
        )


@dataclass
class GreenplumUpdateOperator(GreenplumDataOperator):
    """Update an existing target table from the source table, matching rows on the join key."""

    qualify_predicate: bool = False
    keep_empty_tokens: bool = False

    metadata = OperatorMetaData(
        group="Greenplum Data Operators",
        author="Dillon Woods",
        version=1,
        name="Greenplum Update From",
        description="Greenplum Update From",
    )
    result_title = "Greenplum Update Result"

    def get_parameters(self) -> List[OperatorParameter]:
        return super().get_parameters() + [
            OperatorParameter(P_JOIN_KEY),
            OperatorParameter.boolean(P_TARGET_ANALYZE),
        ]

    def resolve_join_keys(self, parameters: ParameterSource) -> List[str]:
        join_key = self._parameter(parameters, P_JOIN_KEY) or ""
        keys = parse_join_keys(join_key, keep_empty_tokens=self.keep_empty_tokens)
        if not keys:
            raise EmptyJoinKeyError(f"Parameter '{P_JOIN_KEY}' does not name any column: {join_key!r}")
        return keys

    def _build(self, source, parameters, target) -> List[BuiltStatement]:
        return self.builder.build_update_statements(
            self.resolve_source(source),
            target,
            list(source.column_names),
            self.resolve_join_keys(parameters),
            analyze=self._flag(parameters, P_TARGET_ANALYZE),
            qualify_predicate=self.qualify_predicate,
        )
