"""
Parameter schema module.

Defines the immutable per-product parameter catalog (id, kind, bounds,
step, default) and helpers for building default value vectors.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Tuple


MAX_COLOR = 0xFFFFFF

# Runtime parameter values: parameter id -> numeric value
ParameterValues = Dict[str, float]


class ParameterKind(Enum):
    """How a parameter value is encoded."""
    NUMBER = "number"
    ENUM = "enum"
    BOOLEAN = "boolean"
    COLOR = "color"


@dataclass(frozen=True)
class ParameterDefinition:
    """
    Metadata for a single tunable parameter.

    Enum, boolean and color parameters are encoded numerically (option
    code, 0/1 and 24-bit RGB respectively) so that every ParameterValues
    entry is a number. Display labels and help text are supplied by the
    presentation layer and are not part of the definition.
    """
    id: str
    kind: ParameterKind = ParameterKind.NUMBER
    min: float = 0.0
    max: float = 0.0
    default: float = 0.0
    step: float = 1.0
    unit: str = "mm"
    precision: Optional[int] = None
    options: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Parameter id must not be empty")
        if self.kind is ParameterKind.NUMBER and self.step <= 0:
            raise ValueError(f"{self.id}: step must be positive, got {self.step}")
        if self.min > self.max:
            raise ValueError(f"{self.id}: min {self.min} exceeds max {self.max}")
        if not (self.min <= self.default <= self.max):
            raise ValueError(
                f"{self.id}: default {self.default} outside [{self.min}, {self.max}]"
            )
        if self.kind is ParameterKind.ENUM and self.default not in self.options:
            raise ValueError(f"{self.id}: default {self.default} is not an option")

    @property
    def is_number(self) -> bool:
        return self.kind is ParameterKind.NUMBER

    def accepts_code(self, value: float) -> bool:
        """Check an enum/boolean/color value against its encoding."""
        if self.kind is ParameterKind.ENUM:
            return value in self.options
        if self.kind is ParameterKind.BOOLEAN:
            return value in (0, 1)
        if self.kind is ParameterKind.COLOR:
            return float(value).is_integer() and 0 <= value <= MAX_COLOR
        return True

    def to_dict(self) -> dict:
        d = {
            'id': self.id,
            'kind': self.kind.value,
            'min': self.min,
            'max': self.max,
            'default': self.default,
            'step': self.step,
            'unit': self.unit,
        }
        if self.precision is not None:
            d['precision'] = self.precision
        if self.options:
            d['options'] = list(self.options)
        return d


def parameter(
    id: str,
    min: float,
    max: float,
    default: float,
    step: float,
    unit: str = "mm",
    precision: Optional[int] = None,
) -> ParameterDefinition:
    """Helper to create a number parameter."""
    return ParameterDefinition(
        id=id,
        kind=ParameterKind.NUMBER,
        min=min,
        max=max,
        default=default,
        step=step,
        unit=unit,
        precision=precision,
    )


def enum_parameter(id: str, options: Iterable[int], default: int) -> ParameterDefinition:
    """Helper to create an enum parameter encoded as integer option codes."""
    codes = tuple(sorted(int(o) for o in options))
    if not codes:
        raise ValueError(f"{id}: enum parameter needs at least one option")
    return ParameterDefinition(
        id=id,
        kind=ParameterKind.ENUM,
        min=codes[0],
        max=codes[-1],
        default=default,
        step=1,
        unit="",
        precision=0,
        options=codes,
    )


def boolean_parameter(id: str, default: bool) -> ParameterDefinition:
    return ParameterDefinition(
        id=id,
        kind=ParameterKind.BOOLEAN,
        min=0,
        max=1,
        default=1 if default else 0,
        step=1,
        unit="",
        precision=0,
    )


def color_parameter(id: str, default: int) -> ParameterDefinition:
    return ParameterDefinition(
        id=id,
        kind=ParameterKind.COLOR,
        min=0,
        max=MAX_COLOR,
        default=default,
        step=1,
        unit="",
        precision=0,
    )


class ParameterSchema(Mapping):
    """
    Read-only, ordered mapping of parameter id -> ParameterDefinition.

    Created once per product at startup and never mutated afterwards.
    """

    def __init__(self, definitions: Iterable[ParameterDefinition]):
        entries: Dict[str, ParameterDefinition] = {}
        for definition in definitions:
            if definition.id in entries:
                raise ValueError(f"Duplicate parameter id: {definition.id}")
            entries[definition.id] = definition
        self._entries = entries

    def __getitem__(self, key: str) -> ParameterDefinition:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ParameterSchema({list(self._entries)})"

    def to_dict(self) -> dict:
        return {k: v.to_dict() for k, v in self._entries.items()}


def default_values(schema: ParameterSchema) -> ParameterValues:
    """Get a fresh, mutable vector of default values from a schema."""
    return {key: definition.default for key, definition in schema.items()}
