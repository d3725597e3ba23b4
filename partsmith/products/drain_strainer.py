"""
Drain strainer: perforated cylindrical basket.

The basket floor (thickness `rimHeight`) carries concentric rows of
drainage holes, the side wall carries a grid of radial holes, and an
optional center post rises from the floor for lifting the strainer out.
"""

import logging
import math
from typing import Dict, List, Mapping, Tuple

from ..constraints import DynamicConstraints
from ..errors import GeometryConstructionError
from ..kernel import default_kernel
from ..parameters import ParameterSchema, parameter
from ..validation import ValidationError, domain_error, value_of
from .registry import DimensionReadout, Product


logger = logging.getLogger(__name__)

HOLE_SPACING_FACTOR = 1.5   # min centre distance along a row, in hole diameters
MIN_HOLES_PER_ROW = 3
HOLE_OVERSHOOT = 1.0        # through-holes extend past both faces
DEFAULT_WALL = 1.5


SCHEMA = ParameterSchema([
    parameter("diameter", 40, 120, 75, 1, precision=0),
    parameter("depth", 10, 50, 20, 1, precision=0),
    parameter("rimHeight", 1, 5, 2, 0.5, precision=1),
    parameter("wallThickness", 1, 4, 1.5, 0.1, precision=1),
    parameter("holeDiameter", 2, 10, 4, 0.5, precision=1),
    parameter("holeRows", 2, 6, 3, 1, unit="", precision=0),
    parameter("holesPerRow", 4, 16, 8, 1, unit="", precision=0),
    parameter("centerPost", 0, 20, 10, 1, precision=0),
])


def validate_drain_strainer(values: Mapping[str, float]) -> List[ValidationError]:
    """Domain rules beyond basic min/max/step."""
    errors: List[ValidationError] = []

    diameter = value_of(values, "diameter")
    depth = value_of(values, "depth")
    rim = value_of(values, "rimHeight")
    wall = value_of(values, "wallThickness")
    hole = value_of(values, "holeDiameter")
    rows = value_of(values, "holeRows")
    post = value_of(values, "centerPost")

    if wall is None:
        wall = DEFAULT_WALL

    if diameter is not None and hole is not None:
        inner_radius = diameter / 2 - wall
        if hole >= inner_radius:
            errors.append(domain_error(
                "holeDiameter", "holeTooLargeForDiameter",
                "Hole diameter is too large for the strainer diameter",
            ))
        if hole > diameter / 4:
            errors.append(domain_error(
                "holeDiameter", "holeDiameterExcessive",
                "Hole diameter should not exceed 1/4 of strainer diameter",
                maxHoleDiameter=diameter / 4,
            ))

    if post is not None and depth is not None and post > depth * 2:
        errors.append(domain_error(
            "centerPost", "centerPostTooTall",
            "Center post height should not exceed twice the basket depth",
            maxCenterPost=depth * 2,
        ))

    if rim is not None and depth is not None and rim > depth:
        errors.append(domain_error(
            "rimHeight", "rimHeightExceedsDepth",
            "Rim height should not exceed basket depth",
        ))

    if rows and diameter is not None and hole is not None:
        inner_radius = diameter / 2 - wall
        if (hole / 2) * 3 > inner_radius:
            errors.append(domain_error(
                "holeRows", "tooManyHoleRows",
                "Too many hole rows for strainer size - reduce rows or hole diameter",
            ))

    return errors


def drain_strainer_constraints(
    schema: ParameterSchema, values: Mapping[str, float]
) -> Dict[str, DynamicConstraints]:
    constraints: Dict[str, DynamicConstraints] = {}

    diameter = value_of(values, "diameter")
    depth = value_of(values, "depth")

    if diameter is not None:
        constraints["holeDiameter"] = DynamicConstraints(
            max=min(schema["holeDiameter"].max, diameter / 4),
        )
    if depth is not None:
        constraints["centerPost"] = DynamicConstraints(
            max=min(schema["centerPost"].max, depth * 2),
        )
        constraints["rimHeight"] = DynamicConstraints(
            max=min(schema["rimHeight"].max, depth),
        )
    return constraints


def drain_strainer_dimensions(values: Mapping[str, float]) -> List[DimensionReadout]:
    diameter = values.get("diameter", 0)
    depth = values.get("depth", 0)
    rim = values.get("rimHeight", 0)
    wall = values.get("wallThickness", 0)
    rows = values.get("holeRows", 0)
    per_row = values.get("holesPerRow", 0)

    return [
        DimensionReadout("outerDiameter", diameter),
        DimensionReadout("innerDiameter", diameter - 2 * wall),
        DimensionReadout("totalHeight", rim + depth),
        DimensionReadout("basketDepth", depth),
        DimensionReadout("approximateHoles", rows * per_row, unit="", precision=0),
    ]


def base_hole_layout(
    inner_radius: float,
    wall: float,
    hole_diameter: float,
    rows: int,
    holes_per_row: int,
) -> List[Tuple[float, int]]:
    """
    (row radius, hole count) for each concentric floor row that is kept.

    Rows are spread evenly between the centre and an edge margin; a row
    holds at most one hole per 1.5 hole diameters of circumference. Rows
    too close to the centre or with fewer than 3 holes are skipped.
    """
    hole_radius = hole_diameter / 2
    max_row_radius = inner_radius - hole_radius - wall
    layout = []
    for row in range(rows):
        row_radius = (row + 1) / (rows + 1) * max_row_radius
        circumference = 2 * math.pi * row_radius
        count = min(holes_per_row, math.floor(circumference / (HOLE_SPACING_FACTOR * hole_diameter)))
        if row_radius < hole_radius * 2 or count < MIN_HOLES_PER_ROW:
            continue
        layout.append((row_radius, count))
    return layout


def side_hole_rows(depth: float, hole_diameter: float) -> int:
    """Vertical rows of side-wall holes that fit the basket depth."""
    return math.floor(depth / (hole_diameter * 2))


def build_drain_strainer(values: Mapping[str, float], kernel=None):
    """
    Build a drain strainer solid with its floor on z=0.

    Raises GeometryConstructionError when a derived quantity is degenerate.
    """
    kernel = kernel or default_kernel()

    diameter = values["diameter"]
    depth = values["depth"]
    rim = values["rimHeight"]
    wall = values["wallThickness"]
    hole_diameter = values["holeDiameter"]
    rows = int(round(values["holeRows"]))
    holes_per_row = int(round(values["holesPerRow"]))
    post_height = values.get("centerPost", 0)

    outer_radius = diameter / 2
    inner_radius = outer_radius - wall
    hole_radius = hole_diameter / 2

    if inner_radius <= 0:
        raise GeometryConstructionError("innerRadius", inner_radius, "wall consumes the basket")
    if hole_radius <= 0:
        raise GeometryConstructionError("holeRadius", hole_radius, "radius must be positive")
    if depth <= 0 or rim <= 0:
        raise GeometryConstructionError("basketHeight", min(depth, rim), "heights must be positive")
    if inner_radius - hole_radius - wall <= 0:
        raise GeometryConstructionError(
            "maxRowRadius", inner_radius - hole_radius - wall, "no room for floor holes",
        )

    outer = kernel.cylinder(outer_radius, depth + rim)
    cavity = kernel.cylinder(inner_radius, depth + HOLE_OVERSHOOT, rim)
    body = outer.cut(cavity)

    holes = []
    layout = base_hole_layout(inner_radius, wall, hole_diameter, rows, holes_per_row)
    for row_radius, count in layout:
        for i in range(count):
            angle = 2 * math.pi * i / count
            hole = kernel.cylinder(hole_radius, rim + 2 * HOLE_OVERSHOOT, -HOLE_OVERSHOOT)
            holes.append(hole.translate(math.cos(angle) * row_radius, math.sin(angle) * row_radius, 0))

    side_rows = side_hole_rows(depth, hole_diameter)
    if side_rows > 0 and holes_per_row > 0:
        wall_mid_radius = outer_radius - wall / 2
        hole_length = wall + 2 * HOLE_OVERSHOOT
        for i in range(holes_per_row):
            angle_deg = 360.0 * i / holes_per_row
            for j in range(side_rows):
                z = rim + (j + 0.5) * (depth / side_rows)
                # Along +X through the wall mid-radius, then swung into place
                hole = kernel.cylinder(hole_radius, hole_length, -hole_length / 2)
                hole = hole.rotate("Y", 90).translate(wall_mid_radius, 0, z).rotate("Z", angle_deg)
                holes.append(hole)

    logger.debug(
        f"Drain strainer: {sum(c for _, c in layout)} floor holes in {len(layout)} rows, "
        f"{side_rows * holes_per_row} side holes"
    )
    if holes:
        body = body.cut(*holes)

    if post_height > 0:
        post_radius = min(hole_diameter, inner_radius / 4)
        post = kernel.cylinder(post_radius, depth + post_height, rim)
        body = body.fuse(post)

    return body


PRODUCT = Product(
    id="drainStrainer",
    slug="drain-strainer",
    schema=SCHEMA,
    domain_rule=validate_drain_strainer,
    constraint_fn=drain_strainer_constraints,
    builder=build_drain_strainer,
    dimensions_fn=drain_strainer_dimensions,
)
