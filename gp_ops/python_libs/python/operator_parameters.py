"""
Operator parameter declarations and validation.

Parameters reach the operators as named strings; booleans are the strings
"true" and "false".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple


class DataOperatorError(Exception):
    """Base class for errors raised by the data operators."""


class ParameterError(DataOperatorError, ValueError):
    """A required parameter is missing or a value is not acceptable."""


class EmptyJoinKeyError(ParameterError):
    """The join key parameter does not name any column."""


class ParameterType(Enum):
    STRING = "string"
    BOOLEAN = "boolean"


P_TARGET_SCHEMA = "Target Schema"
P_TARGET_TABLE = "Target Table"
P_TARGET_TRUNCATE = "Truncate Before Insert"
P_TARGET_ANALYZE = "Analyze After Insert"
P_JOIN_KEY = "Join Key (ex: col1,col2)"

BOOLEAN_VALUES = ("true", "false")


@dataclass(frozen=True)
class OperatorParameter:
    name: str
    parameter_type: ParameterType = ParameterType.STRING
    default: Optional[str] = None
    required: bool = True
    allowed_values: Tuple[str, ...] = ()

    @classmethod
    def boolean(cls, name: str, default: bool = False) -> "OperatorParameter":
        return cls(
            name=name,
            parameter_type=ParameterType.BOOLEAN,
            default=str(default).lower(),
            required=True,
            allowed_values=BOOLEAN_VALUES,
        )


class DictParameterSource:
    """Parameter source backed by a plain mapping."""

    def __init__(self, values: Optional[Mapping[str, object]] = None, **kwargs):
        self._values: Dict[str, str] = {}
        for name, value in {**(values or {}), **kwargs}.items():
            if isinstance(value, bool):
                value = str(value).lower()
            self._values[name] = None if value is None else str(value)

    def get_parameter(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def __repr__(self) -> str:
        return f"DictParameterSource({self._values!r})"


def resolve_parameter(parameters, declaration: OperatorParameter) -> Optional[str]:
    """Return the supplied value, or the declared default when nothing was supplied."""
    value = parameters.get_parameter(declaration.name)
    if value is None or value == "":
        return declaration.default
    return value


def validate_parameters(parameters, declarations: Sequence[OperatorParameter]) -> List[str]:
    """Collect validation messages for missing required values and unknown choices."""
    messages = []
    for declaration in declarations:
        value = resolve_parameter(parameters, declaration)
        if value is None or (declaration.parameter_type is ParameterType.STRING and not value.strip()):
            if declaration.required:
                messages.append(f"Parameter '{declaration.name}' is required")
            continue
        if declaration.allowed_values and value.strip().lower() not in declaration.allowed_values:
            messages.append(
                f"Parameter '{declaration.name}' must be one of {list(declaration.allowed_values)}, got {value!r}"
            )
    return messages


def parse_bool(value: Optional[str], name: str = "parameter") -> bool:
    if value is None:
        return False
    normalized = value.strip().lower()
    if normalized not in BOOLEAN_VALUES:
        raise ParameterError(f"Parameter '{name}' must be 'true' or 'false', got {value!r}")
    return normalized == "true"
