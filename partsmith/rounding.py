"""
Rounding and snapping utilities for manufacturable dimensions.
"""

import math
from typing import Iterable, Mapping

from .parameters import ParameterDefinition, ParameterSchema, ParameterValues


# Common FDM nozzle diameters (mm)
NOZZLE_SIZES = (0.2, 0.3, 0.4, 0.5, 0.6, 0.8, 1.0)

# Manufacturing resolution (mm)
RESOLUTION = 0.1

_DECIMALS = 10


def round_to_resolution(value: float, resolution: float = RESOLUTION) -> float:
    """
    Round a value to the given resolution.

    >>> round_to_resolution(1.234)
    1.2
    """
    return round(round(value / resolution) * resolution, _DECIMALS)


def snap_to_multiple(value: float, multiple: float) -> float:
    """
    Snap a value to the nearest multiple of an increment.

    >>> snap_to_multiple(2.7, 0.5)
    2.5
    """
    return round(round(value / multiple) * multiple, _DECIMALS)


def snap_to_nozzle(value: float, nozzle_size: float = 0.4) -> float:
    """Snap to a nozzle-width multiple, then to the manufacturing resolution."""
    return round_to_resolution(snap_to_multiple(value, nozzle_size))


def round_parameter(value: float, definition: ParameterDefinition) -> float:
    """
    Round a value according to its parameter definition.

    Applies step, resolution and precision in turn, then clamps to the
    schema bounds. Non-number parameters and non-finite values are
    returned unchanged.
    """
    if not definition.is_number or not math.isfinite(value):
        return value

    rounded = snap_to_multiple(value, definition.step)
    rounded = round_to_resolution(rounded)
    if definition.precision is not None:
        rounded = round(rounded, definition.precision)
    return max(definition.min, min(definition.max, rounded))


def round_all(values: Mapping[str, float], schema: ParameterSchema) -> ParameterValues:
    """Round all values; ids not in the schema get resolution rounding only."""
    rounded: ParameterValues = {}
    for key, value in values.items():
        definition = schema.get(key)
        if definition is not None:
            rounded[key] = round_parameter(value, definition)
        else:
            rounded[key] = round_to_resolution(value)
    return rounded


def apply_nozzle_snapping(
    values: Mapping[str, float],
    parameter_ids: Iterable[str],
    nozzle_size: float = 0.4,
) -> ParameterValues:
    snapped = dict(values)
    for key in parameter_ids:
        if key in snapped:
            snapped[key] = snap_to_nozzle(snapped[key], nozzle_size)
    return snapped


def closest_nozzle_size(value: float) -> float:
    return min(NOZZLE_SIZES, key=lambda size: abs(size - value))


def is_multiple_of(value: float, multiple: float, tolerance: float = 1e-4) -> bool:
    """Check if a value is a multiple of an increment within tolerance."""
    remainder = value % multiple
    return abs(remainder) < tolerance or abs(remainder - multiple) < tolerance
