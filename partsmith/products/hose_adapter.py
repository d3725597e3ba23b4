"""
Hose adapter: tapered dual-diameter tube with optional grip ridges.

Connects two hoses of different diameters. `innerDiameter` is the bore of
the small end and `outerDiameter` the bore of the large end; both ends get
the same wall thickness. The body is a small-end cylinder, a lofted taper
and a large-end cylinder, hollowed by the same composition at bore radii.
"""

import logging
import math
from typing import Dict, List, Mapping

from ..constraints import DynamicConstraints
from ..errors import GeometryConstructionError
from ..kernel import default_kernel
from ..parameters import ParameterSchema, parameter
from ..validation import ValidationError, domain_error, value_of
from .registry import DimensionReadout, Product


logger = logging.getLogger(__name__)

MIN_END_LENGTH = 10.0      # each cylindrical end (mm)
MIN_DIAMETER_GAP = 2.0     # large bore over small bore (mm)
MIN_WALL_THICKNESS = 1.0
CAVITY_OVERSHOOT = 1.0     # bore extends past both open ends


SCHEMA = ParameterSchema([
    parameter("innerDiameter", 10, 100, 32, 0.5, precision=1),
    parameter("outerDiameter", 15, 150, 38, 0.5, precision=1),
    parameter("length", 20, 200, 60, 1, precision=0),
    parameter("wallThickness", 1, 10, 2, 0.1, precision=1),
    parameter("taperLength", 10, 150, 40, 1, precision=0),
    parameter("ridgeCount", 0, 8, 3, 1, unit="", precision=0),
    parameter("ridgeDepth", 0, 3, 0.8, 0.1, precision=1),
    parameter("ridgeWidth", 1, 10, 3, 0.5, precision=1),
])


def end_length(length: float, taper_length: float) -> float:
    return (length - taper_length) / 2


def max_ridge_count(end: float, ridge_width: float) -> int:
    """Largest ridge count whose spacing still fits a ridge width."""
    return math.floor(end / ridge_width) - 1


def validate_hose_adapter(values: Mapping[str, float]) -> List[ValidationError]:
    """Domain rules beyond basic min/max/step."""
    errors: List[ValidationError] = []

    inner = value_of(values, "innerDiameter")
    outer = value_of(values, "outerDiameter")
    length = value_of(values, "length")
    wall = value_of(values, "wallThickness")
    taper = value_of(values, "taperLength")
    ridge_count = value_of(values, "ridgeCount")
    ridge_depth = value_of(values, "ridgeDepth")
    ridge_width = value_of(values, "ridgeWidth")

    if inner is not None and outer is not None:
        if outer <= inner:
            errors.append(domain_error(
                "outerDiameter", "outerNotGreater",
                "Outer diameter must be greater than inner diameter",
            ))
        elif outer - inner < MIN_DIAMETER_GAP:
            errors.append(domain_error(
                "outerDiameter", "outerTooClose",
                f"Outer diameter must be at least {MIN_DIAMETER_GAP:g}mm larger than inner diameter",
                minOuterDiameter=inner + MIN_DIAMETER_GAP,
            ))

    if length is not None and taper is not None:
        max_taper = length - 2 * MIN_END_LENGTH
        if taper > max_taper:
            errors.append(domain_error(
                "taperLength", "taperTooLong",
                f"Taper length must be at most {max_taper:.1f}mm "
                f"(total length minus {2 * MIN_END_LENGTH:g}mm for ends)",
                maxTaperLength=max_taper,
            ))

    if wall is not None and inner is not None:
        max_wall = inner / 2
        if wall > max_wall:
            errors.append(domain_error(
                "wallThickness", "wallThicknessTooLarge",
                f"Wall thickness cannot exceed {max_wall:.1f}mm (half of inner diameter)",
                maxWallThickness=max_wall,
            ))
        if wall < MIN_WALL_THICKNESS:
            errors.append(domain_error(
                "wallThickness", "wallThicknessTooSmall",
                f"Wall thickness must be at least {MIN_WALL_THICKNESS:g}mm",
            ))

    if ridge_count is not None and ridge_count > 0:
        if length is not None and taper is not None and ridge_width is not None:
            end = end_length(length, taper)
            if end / (ridge_count + 1) < ridge_width:
                max_ridges = max_ridge_count(end, ridge_width)
                errors.append(domain_error(
                    "ridgeCount", "tooManyRidges",
                    f"Too many ridges for the available space. Maximum {max_ridges} ridges",
                    maxRidges=max_ridges,
                ))
        if ridge_depth is not None and wall is not None and ridge_depth > wall:
            errors.append(domain_error(
                "ridgeDepth", "ridgeDepthExceedsWall",
                "Ridge depth should not exceed wall thickness",
            ))

    return errors


def hose_adapter_constraints(
    schema: ParameterSchema, values: Mapping[str, float]
) -> Dict[str, DynamicConstraints]:
    """Tightened bounds for interdependent parameters."""
    constraints: Dict[str, DynamicConstraints] = {}

    length = value_of(values, "length")
    taper = value_of(values, "taperLength")
    ridge_width = value_of(values, "ridgeWidth")
    inner = value_of(values, "innerDiameter")
    wall = value_of(values, "wallThickness")

    if length is not None:
        constraints["taperLength"] = DynamicConstraints(
            max=max(schema["taperLength"].min, length - 2 * MIN_END_LENGTH),
        )

    if length is not None and taper is not None and ridge_width is not None:
        end = end_length(length, taper)
        constraints["ridgeCount"] = DynamicConstraints(
            max=min(schema["ridgeCount"].max, max(0, max_ridge_count(end, ridge_width))),
        )

    if inner is not None:
        constraints["wallThickness"] = DynamicConstraints(
            max=min(schema["wallThickness"].max, inner / 2),
        )
        constraints["outerDiameter"] = DynamicConstraints(
            min=max(schema["outerDiameter"].min, inner + MIN_DIAMETER_GAP),
        )

    if wall is not None:
        constraints["ridgeDepth"] = DynamicConstraints(
            max=min(schema["ridgeDepth"].max, wall),
        )

    return constraints


def hose_adapter_dimensions(values: Mapping[str, float]) -> List[DimensionReadout]:
    inner = values.get("innerDiameter", 0)
    outer = values.get("outerDiameter", 0)
    wall = values.get("wallThickness", 0)
    length = values.get("length", 0)
    taper = values.get("taperLength", 0)
    ridge_count = values.get("ridgeCount", 0)

    end = end_length(length, taper)
    dimensions = [
        DimensionReadout("smallEndOuterDiameter", inner + 2 * wall),
        DimensionReadout("largeEndOuterDiameter", outer + 2 * wall),
        DimensionReadout("endSectionLength", end),
        DimensionReadout("diameterDifference", outer - inner),
    ]
    if ridge_count > 0:
        dimensions.append(DimensionReadout("ridgeSpacing", end / (ridge_count + 1)))
    return dimensions


def _stepped_tube(kernel, small_radius: float, large_radius: float,
                  end: float, taper: float, overshoot: float = 0.0):
    """Small cylinder + lofted taper + large cylinder along +Z."""
    small = kernel.extrude(kernel.circle(small_radius, -overshoot), end + overshoot)
    transition = kernel.loft(
        kernel.circle(small_radius, end),
        kernel.circle(large_radius, end + taper),
    )
    large = kernel.extrude(kernel.circle(large_radius, end + taper), end + overshoot)
    return small.fuse(transition, large)


def build_hose_adapter(values: Mapping[str, float], kernel=None):
    """
    Build a hose adapter solid, centred on the Z origin.

    Raises GeometryConstructionError when a derived quantity is degenerate.
    """
    kernel = kernel or default_kernel()

    inner_diameter = values["innerDiameter"]
    outer_diameter = values["outerDiameter"]
    length = values["length"]
    wall = values["wallThickness"]
    taper = values["taperLength"]
    ridge_count = int(round(values.get("ridgeCount", 0)))
    ridge_depth = values.get("ridgeDepth", 0)
    ridge_width = values.get("ridgeWidth", 0)

    small_inner_radius = inner_diameter / 2
    small_outer_radius = small_inner_radius + wall
    large_inner_radius = outer_diameter / 2
    large_outer_radius = large_inner_radius + wall
    end = end_length(length, taper)

    if end < 0:
        raise GeometryConstructionError(
            "endLength", end,
            "taper length exceeds total length minus the end sections",
        )
    if taper <= 0:
        raise GeometryConstructionError("taperLength", taper, "taper must have positive length")
    if small_inner_radius <= 0:
        raise GeometryConstructionError("smallInnerRadius", small_inner_radius, "radius must be positive")
    if large_inner_radius <= 0:
        raise GeometryConstructionError("largeInnerRadius", large_inner_radius, "radius must be positive")
    if wall <= 0:
        raise GeometryConstructionError("wallThickness", wall, "wall must be positive")

    logger.debug(
        f"Hose adapter: r_small={small_inner_radius:.2f}/{small_outer_radius:.2f} "
        f"r_large={large_inner_radius:.2f}/{large_outer_radius:.2f} "
        f"end={end:.2f} taper={taper:.2f}"
    )

    outer_body = _stepped_tube(kernel, small_outer_radius, large_outer_radius, end, taper)

    if ridge_count > 0 and ridge_depth > 0:
        spacing = end / (ridge_count + 1)
        if spacing < ridge_width:
            raise GeometryConstructionError(
                "ridgeSpacing", spacing, f"ridges of width {ridge_width:g}mm overlap",
            )
        ridges = []
        for i in range(1, ridge_count + 1):
            z = i * spacing - ridge_width / 2
            ridges.append(kernel.cylinder(small_outer_radius + ridge_depth, ridge_width, z))
        for i in range(1, ridge_count + 1):
            z = end + taper + i * spacing - ridge_width / 2
            ridges.append(kernel.cylinder(large_outer_radius + ridge_depth, ridge_width, z))
        outer_body = outer_body.fuse(*ridges)

    cavity = _stepped_tube(
        kernel, small_inner_radius, large_inner_radius, end, taper, CAVITY_OVERSHOOT,
    )
    body = outer_body.cut(cavity)

    return body.translate(0, 0, -length / 2)


PRODUCT = Product(
    id="hoseAdapter",
    slug="hose-adapter",
    schema=SCHEMA,
    domain_rule=validate_hose_adapter,
    constraint_fn=hose_adapter_constraints,
    builder=build_hose_adapter,
    dimensions_fn=hose_adapter_dimensions,
)
