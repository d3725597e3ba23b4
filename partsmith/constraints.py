"""
Dynamic constraint resolver.

Products supply a pure function computing tightened bounds for
interdependent parameters from the current values. The fixed-point
adjustment below clamps and snaps a vector until it stops changing or an
iteration cap is reached.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .parameters import ParameterDefinition, ParameterSchema, ParameterValues
from .validation import value_of


logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10
SNAP_DECIMALS = 10


@dataclass(frozen=True)
class DynamicConstraints:
    """Optional tightening of one parameter's schema bounds."""
    min: Optional[float] = None
    max: Optional[float] = None


ConstraintFunction = Callable[[ParameterSchema, Mapping[str, float]], Dict[str, DynamicConstraints]]


@dataclass
class AdjustmentResult:
    """Result of a fixed-point adjustment."""
    values: ParameterValues
    corrections: List[str] = field(default_factory=list)
    iterations: int = 0
    converged: bool = True

    @property
    def changed(self) -> bool:
        return bool(self.corrections)

    def to_dict(self) -> dict:
        return {
            'values': dict(self.values),
            'corrections': list(self.corrections),
            'iterations': self.iterations,
            'converged': self.converged,
        }


def effective_bounds(
    schema: ParameterSchema,
    parameter_id: str,
    dynamic: Mapping[str, DynamicConstraints],
) -> Tuple[float, float]:
    """
    Get the effective (min, max) for a parameter.

    Dynamic overrides win over schema bounds. Raises KeyError for ids
    that are not in the schema.
    """
    definition = schema[parameter_id]
    override = dynamic.get(parameter_id) or DynamicConstraints()
    lo = override.min if override.min is not None else definition.min
    hi = override.max if override.max is not None else definition.max
    return lo, hi


def _grid_value(definition: ParameterDefinition, steps: int) -> float:
    return round(definition.min + steps * definition.step, SNAP_DECIMALS)


def snap_to_step(value: float, definition: ParameterDefinition,
                 lo: Optional[float] = None, hi: Optional[float] = None) -> float:
    """
    Snap a value to the step grid anchored at the schema min.

    Rounds half up to the nearest grid point. When a range is given and the
    nearest grid point falls outside it, the neighbouring grid point on the
    inside is used instead if that one fits.
    """
    exact = (value - definition.min) / definition.step
    steps = math.floor(exact + 0.5)
    snapped = _grid_value(definition, steps)

    if hi is not None and snapped > hi:
        inside = _grid_value(definition, math.floor(exact + 1e-9))
        if lo is None or inside >= lo:
            snapped = inside
    elif lo is not None and snapped < lo:
        inside = _grid_value(definition, math.ceil(exact - 1e-9))
        if hi is None or inside <= hi:
            snapped = inside
    return snapped


def adjust_with_report(
    schema: ParameterSchema,
    values: Mapping[str, float],
    constraint_fn: Optional[ConstraintFunction] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> AdjustmentResult:
    """
    Repair a value vector so it satisfies schema and dynamic bounds.

    Each pass recomputes the dynamic constraints from the current vector,
    clamps every number parameter into its effective range and snaps it to
    the schema step grid. Passes repeat until nothing changes or the
    iteration cap is hit; the last vector is returned either way.
    """
    adjusted: ParameterValues = dict(values)
    corrections: List[str] = []
    changed = True
    iterations = 0

    while changed and iterations < max_iterations:
        changed = False
        iterations += 1
        dynamic = constraint_fn(schema, adjusted) if constraint_fn else {}

        for key, definition in schema.items():
            current = value_of(adjusted, key)
            if current is None:
                continue

            if not definition.is_number:
                if not definition.accepts_code(current):
                    adjusted[key] = definition.default
                    corrections.append(f"{key}: {current:g} -> {definition.default:g} (reset)")
                    changed = True
                continue

            lo, hi = effective_bounds(schema, key, dynamic)
            # Empty range (lo > hi) ends at hi
            new_value = min(max(current, lo), hi)

            new_value = snap_to_step(new_value, definition, lo, hi)

            if new_value != current:
                adjusted[key] = new_value
                corrections.append(f"{key}: {current:g} -> {new_value:g}")
                changed = True

    converged = not changed
    if not converged:
        logger.warning(
            f"Constraint adjustment stopped at iteration cap ({max_iterations}) "
            f"without reaching a fixed point"
        )
    elif corrections:
        logger.info(f"Adjusted parameters in {iterations} pass(es): {corrections}")

    return AdjustmentResult(
        values=adjusted,
        corrections=corrections,
        iterations=iterations,
        converged=converged,
    )


def adjust(
    schema: ParameterSchema,
    values: Mapping[str, float],
    constraint_fn: Optional[ConstraintFunction] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> ParameterValues:
    """Adjust values to fit within valid constraints (values only)."""
    return adjust_with_report(schema, values, constraint_fn, max_iterations).values
