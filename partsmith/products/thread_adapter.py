"""
Thread adapter: joins two threaded fittings of different size or gender.

Layout along +Z: thread A section, a body (round taper or hex grip), then
thread B section. Each thread section is either male (core cylinder with
external helical teeth) or female (sleeve with internal helical teeth).
"""

import logging
from typing import Dict, List, Mapping

from ..constraints import DynamicConstraints
from ..errors import GeometryConstructionError
from ..kernel import default_kernel
from ..parameters import ParameterSchema, boolean_parameter, enum_parameter, parameter
from ..validation import ValidationError, domain_error, value_of
from .registry import DimensionReadout, Product


logger = logging.getLogger(__name__)

MALE = 0
FEMALE = 1

WALL_THICKNESS = 2.5         # female sleeve wall (mm)
MIN_DIAMETER = 12.0
MIN_PITCH = 0.8              # printable
MAX_LENGTH_RATIO = 0.6       # thread length / diameter
HEX_CLEARANCE = 4.0          # hex grip over largest thread diameter

# Trapezoidal tooth proportions, as fractions of pitch
TOOTH_HEIGHT_RATIO = 0.6
ROOT_WIDTH_RATIO = 0.6
APEX_WIDTH_RATIO = 0.3

# Passage clearance below nominal diameter, as fractions of pitch
MALE_PASSAGE_RATIO = 0.8
FEMALE_PASSAGE_RATIO = 0.6

PASSAGE_OVERSHOOT = 1.0

THREAD_ENDS = ("A", "B")


def _thread_parameters(end: str, diameter: float, pitch: float, gender: int):
    return [
        parameter(f"thread{end}Diameter", 10, 80, diameter, 0.5, precision=1),
        parameter(f"thread{end}Pitch", 0.5, 5.0, pitch, 0.1, precision=1),
        enum_parameter(f"thread{end}Type", (MALE, FEMALE), gender),
        parameter(f"thread{end}Length", 5, 30, 10, 1, precision=0),
    ]


SCHEMA = ParameterSchema(
    _thread_parameters("A", 28, 2.0, MALE)
    + _thread_parameters("B", 38, 2.5, FEMALE)
    + [
        parameter("bodyLength", 10, 50, 20, 1, precision=0),
        parameter("hexGripSize", 0, 60, 0, 1, precision=0),
        boolean_parameter("hollow", 1),
    ]
)


def thread_outer_diameter(diameter: float, gender: int) -> float:
    return diameter + 2 * WALL_THICKNESS if gender == FEMALE else diameter


def thread_inner_diameter(diameter: float, pitch: float, gender: int) -> float:
    """Diameter of the bore a thread section leaves for the passage."""
    ratio = MALE_PASSAGE_RATIO if gender == MALE else FEMALE_PASSAGE_RATIO
    return diameter - pitch * ratio


def passage_diameter(values: Mapping[str, float]) -> float:
    return min(
        thread_inner_diameter(
            values[f"thread{end}Diameter"],
            values[f"thread{end}Pitch"],
            int(values[f"thread{end}Type"]),
        )
        for end in THREAD_ENDS
    )


def total_length(values: Mapping[str, float]) -> float:
    return values["threadALength"] + values["bodyLength"] + values["threadBLength"]


def _largest_diameter(values: Mapping[str, float]) -> float:
    return max(value_of(values, "threadADiameter") or 0, value_of(values, "threadBDiameter") or 0)


def validate_thread_adapter(values: Mapping[str, float]) -> List[ValidationError]:
    """Domain rules beyond basic min/max/step."""
    errors: List[ValidationError] = []

    for end in THREAD_ENDS:
        diameter = value_of(values, f"thread{end}Diameter")
        length = value_of(values, f"thread{end}Length")
        pitch = value_of(values, f"thread{end}Pitch")

        if diameter is not None and diameter < MIN_DIAMETER:
            errors.append(domain_error(
                f"thread{end}Diameter", "diameterTooSmall",
                f"Minimum diameter is {MIN_DIAMETER:g}mm for structural integrity",
                minDiameter=MIN_DIAMETER,
            ))

        if diameter is not None and length is not None:
            max_length = diameter * MAX_LENGTH_RATIO
            if length > max_length:
                errors.append(domain_error(
                    f"thread{end}Length", "threadLengthTooLong",
                    "Thread length cannot exceed 60% of diameter",
                    maxThreadLength=max_length,
                ))

        if pitch is not None and pitch < MIN_PITCH:
            errors.append(domain_error(
                f"thread{end}Pitch", "pitchTooSmall",
                f"Thread pitch must be at least {MIN_PITCH:g}mm for printability",
                minPitch=MIN_PITCH,
            ))

    hex_grip = value_of(values, "hexGripSize")
    if hex_grip is not None and hex_grip > 0:
        min_hex = _largest_diameter(values) + HEX_CLEARANCE
        if hex_grip < min_hex:
            errors.append(domain_error(
                "hexGripSize", "hexGripTooSmall",
                "Hex grip size must be at least 4mm larger than the maximum thread "
                "diameter, or set to 0 for round body",
                minHexGripSize=min_hex,
            ))

    return errors


def thread_adapter_constraints(
    schema: ParameterSchema, values: Mapping[str, float]
) -> Dict[str, DynamicConstraints]:
    constraints: Dict[str, DynamicConstraints] = {}

    for end in THREAD_ENDS:
        diameter = value_of(values, f"thread{end}Diameter")
        if diameter is not None:
            constraints[f"thread{end}Length"] = DynamicConstraints(
                max=min(schema[f"thread{end}Length"].max, diameter * MAX_LENGTH_RATIO),
            )
        constraints[f"thread{end}Pitch"] = DynamicConstraints(
            min=max(schema[f"thread{end}Pitch"].min, MIN_PITCH),
        )
        constraints[f"thread{end}Diameter"] = DynamicConstraints(
            min=max(schema[f"thread{end}Diameter"].min, MIN_DIAMETER),
        )

    hex_grip = value_of(values, "hexGripSize")
    if hex_grip is not None and hex_grip > 0:
        constraints["hexGripSize"] = DynamicConstraints(
            min=max(schema["hexGripSize"].min, _largest_diameter(values) + HEX_CLEARANCE),
        )

    return constraints


def thread_adapter_dimensions(values: Mapping[str, float]) -> List[DimensionReadout]:
    filled = {key: values.get(key, 0) for key in SCHEMA}
    filled["hollow"] = values.get("hollow", 1)

    dimensions = [
        DimensionReadout(
            "threadAOuterDiameter",
            thread_outer_diameter(filled["threadADiameter"], int(filled["threadAType"])),
        ),
        DimensionReadout(
            "threadBOuterDiameter",
            thread_outer_diameter(filled["threadBDiameter"], int(filled["threadBType"])),
        ),
        DimensionReadout("totalLength", total_length(filled)),
        DimensionReadout("wallThickness", WALL_THICKNESS),
    ]
    if filled["hollow"] == 1:
        dimensions.append(DimensionReadout("innerPassageDiameter", passage_diameter(filled)))
    return dimensions


def _thread_section(kernel, diameter: float, pitch: float, gender: int,
                    length: float, start_z: float):
    """One threaded end, from start_z to start_z + length."""
    radius = diameter / 2
    tooth_height = pitch * TOOTH_HEIGHT_RATIO
    root_width = pitch * ROOT_WIDTH_RATIO
    apex_width = pitch * APEX_WIDTH_RATIO

    if gender == MALE:
        # Teeth root on a core of the nominal radius, flush with the body
        core = kernel.cylinder(radius, length)
        teeth = kernel.thread(radius, pitch, length, root_width, apex_width, tooth_height)
        section = core.fuse(teeth)
    else:
        sleeve = kernel.cylinder(radius + WALL_THICKNESS, length).cut(kernel.cylinder(radius, length))
        teeth = kernel.thread(radius, pitch, length, root_width, apex_width, -tooth_height)
        section = sleeve.fuse(teeth)

    return section.translate(0, 0, start_z)


def build_thread_adapter(values: Mapping[str, float], kernel=None):
    """
    Build a thread adapter solid, centred on the Z origin.

    Raises GeometryConstructionError when a derived quantity is degenerate.
    """
    kernel = kernel or default_kernel()

    diameter_a = values["threadADiameter"]
    diameter_b = values["threadBDiameter"]
    pitch_a = values["threadAPitch"]
    pitch_b = values["threadBPitch"]
    type_a = int(values["threadAType"])
    type_b = int(values["threadBType"])
    length_a = values["threadALength"]
    length_b = values["threadBLength"]
    body_length = values["bodyLength"]
    hex_grip = values.get("hexGripSize", 0)
    hollow = values.get("hollow", 1) == 1

    for quantity, value in (
        ("threadALength", length_a),
        ("threadBLength", length_b),
        ("bodyLength", body_length),
        ("threadAPitch", pitch_a),
        ("threadBPitch", pitch_b),
    ):
        if value <= 0:
            raise GeometryConstructionError(quantity, value, "must be positive")

    total = length_a + body_length + length_b
    body_start = length_a
    body_end = length_a + body_length

    if hex_grip > 0:
        hex_radius = hex_grip / 2
        body = kernel.loft(
            kernel.polygon(hex_radius, 6, body_start),
            kernel.polygon(hex_radius, 6, body_end),
        )
    else:
        body = kernel.loft(
            kernel.circle(thread_outer_diameter(diameter_a, type_a) / 2, body_start),
            kernel.circle(thread_outer_diameter(diameter_b, type_b) / 2, body_end),
        )

    thread_a = _thread_section(kernel, diameter_a, pitch_a, type_a, length_a, 0)
    thread_b = _thread_section(kernel, diameter_b, pitch_b, type_b, length_b, body_end)
    body = body.fuse(thread_a, thread_b)

    if hollow:
        passage_radius = passage_diameter(values) / 2
        if passage_radius <= 0:
            raise GeometryConstructionError("passageRadius", passage_radius, "no room for passage")
        logger.debug(f"Thread adapter passage: r={passage_radius:.2f}")
        passage = kernel.cylinder(passage_radius, total + 2 * PASSAGE_OVERSHOOT, -PASSAGE_OVERSHOOT)
        body = body.cut(passage)

    logger.debug(
        f"Thread adapter: A={'male' if type_a == MALE else 'female'} d={diameter_a:g} p={pitch_a:g}, "
        f"B={'male' if type_b == MALE else 'female'} d={diameter_b:g} p={pitch_b:g}, "
        f"total={total:g} hex={hex_grip:g}"
    )

    return body.translate(0, 0, -total / 2)


PRODUCT = Product(
    id="threadAdapter",
    slug="thread-adapter",
    schema=SCHEMA,
    domain_rule=validate_thread_adapter,
    constraint_fn=thread_adapter_constraints,
    builder=build_thread_adapter,
    dimensions_fn=thread_adapter_dimensions,
)
