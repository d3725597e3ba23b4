"""
Validation engine.

Checks a value vector against schema bounds and steps, then runs an
optional product-specific domain rule. Pure: never raises for well-typed
input and never mutates its arguments.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from .parameters import ParameterDefinition, ParameterSchema


STEP_TOLERANCE = 1e-4


class ErrorKind(Enum):
    """Category of a validation error."""
    REQUIRED = "required"
    BELOW_MIN = "belowMin"
    ABOVE_MAX = "aboveMax"
    NOT_ON_STEP = "notOnStep"
    INVALID_OPTION = "invalidOption"
    DOMAIN = "domain"

    @property
    def is_schema_bound(self) -> bool:
        return self is not ErrorKind.DOMAIN


@dataclass(frozen=True)
class ValidationError:
    """A single problem with one parameter."""
    parameter_id: str
    kind: ErrorKind
    message: str
    code: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = {
            'parameter_id': self.parameter_id,
            'kind': self.kind.value,
            'message': self.message,
        }
        if self.code:
            d['code'] = self.code
        if self.context:
            d['context'] = dict(self.context)
        return d


def domain_error(parameter_id: str, code: str, message: str, **context) -> ValidationError:
    """Create a domain-rule error."""
    return ValidationError(parameter_id, ErrorKind.DOMAIN, message, code, context)


# A product-specific rule: full values map in, zero or more errors out
DomainRule = Callable[[Mapping[str, float]], List[ValidationError]]


@dataclass(frozen=True)
class ValidationResult:
    """Aggregated outcome of schema and domain checks."""
    errors: tuple = ()

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def schema_errors(self) -> List[ValidationError]:
        return [e for e in self.errors if e.kind.is_schema_bound]

    @property
    def domain_errors(self) -> List[ValidationError]:
        return [e for e in self.errors if e.kind is ErrorKind.DOMAIN]

    @classmethod
    def valid(cls) -> 'ValidationResult':
        return cls(())

    def to_dict(self) -> dict:
        return {
            'is_valid': self.is_valid,
            'errors': [e.to_dict() for e in self.errors],
        }


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def value_of(values: Mapping[str, Any], key: str) -> Optional[float]:
    """Numeric value for a key, or None when missing or not a number."""
    value = values.get(key)
    return float(value) if _is_number(value) else None


def _check_number(key: str, definition: ParameterDefinition, value: float) -> List[ValidationError]:
    errors = []
    unit = definition.unit

    if value < definition.min:
        errors.append(ValidationError(
            key, ErrorKind.BELOW_MIN,
            f"{key} must be at least {definition.min:g}{unit}",
        ))
    if value > definition.max:
        errors.append(ValidationError(
            key, ErrorKind.ABOVE_MAX,
            f"{key} must be at most {definition.max:g}{unit}",
        ))

    steps_from_min = (value - definition.min) / definition.step
    if abs(steps_from_min - round(steps_from_min)) > STEP_TOLERANCE:
        errors.append(ValidationError(
            key, ErrorKind.NOT_ON_STEP,
            f"{key} must be a multiple of {definition.step:g}{unit}",
        ))
    return errors


def validate(
    schema: ParameterSchema,
    values: Mapping[str, Any],
    domain_rule: Optional[DomainRule] = None,
) -> ValidationResult:
    """
    Validate parameter values against their schema and a domain rule.

    Checks, for every parameter in the schema:
    - The value is present
    - The value is within min/max bounds
    - The value lies on the step grid anchored at min (tolerance 1e-4)
    - Enum/boolean/color values use a legal encoding

    The domain rule then receives the full values map and may flag any
    parameter id, including ones related only through a derived quantity.
    """
    errors: List[ValidationError] = []

    for key, definition in schema.items():
        value = values.get(key)

        if not _is_number(value):
            errors.append(ValidationError(key, ErrorKind.REQUIRED, f"{key} is required"))
            continue

        if definition.is_number:
            errors.extend(_check_number(key, definition, value))
        elif not definition.accepts_code(value):
            errors.append(ValidationError(
                key, ErrorKind.INVALID_OPTION,
                f"{key} has an invalid {definition.kind.value} value {value!r}",
            ))

    if domain_rule is not None:
        errors.extend(domain_rule(values))

    return ValidationResult(tuple(errors))


def errors_for(result: ValidationResult, parameter_id: str) -> List[ValidationError]:
    """Get validation errors for a specific parameter."""
    return [e for e in result.errors if e.parameter_id == parameter_id]


def has_error(result: ValidationResult, parameter_id: str) -> bool:
    return any(e.parameter_id == parameter_id for e in result.errors)


def first_error_message(result: ValidationResult, parameter_id: str) -> Optional[str]:
    errors = errors_for(result, parameter_id)
    return errors[0].message if errors else None
