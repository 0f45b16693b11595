"""
Greenplum data operators.

Insert-select and update-from operators that run inside an existing database
session and report a (Step, Result) ledger of what they executed.
"""

__version__ = "0.1.0"

from .project_config import load_project_config, load_project_config_object
from .python_libs.python.data_operators import (
    GreenplumInsertOperator,
    GreenplumUpdateOperator,
    TargetTableNotFoundError,
)
from .python_libs.python.operator_parameters import (
    DataOperatorError,
    DictParameterSource,
    EmptyJoinKeyError,
    ParameterError,
)
from .python_libs.python.result_reporter import RunOutcome
from .python_libs.python.sql_templates import InvalidIdentifierError
from .python_libs.python.step_executor import StepResult
from .python_libs.python.warehouse_utils import BoundSourceTable, warehouse_utils

__all__ = [
    "GreenplumInsertOperator",
    "GreenplumUpdateOperator",
    "TargetTableNotFoundError",
    "DataOperatorError",
    "DictParameterSource",
    "EmptyJoinKeyError",
    "ParameterError",
    "InvalidIdentifierError",
    "RunOutcome",
    "StepResult",
    "BoundSourceTable",
    "warehouse_utils",
    "load_project_config",
    "load_project_config_object",
]
