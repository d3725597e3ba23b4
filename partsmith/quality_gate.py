"""
Quality gate module for built solids.

Provides the B-Rep validity check and simple sanity checks (non-zero
volume, bounding box within expected extents) run after a build and
before export.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from enum import Enum
import logging

from OCP.BRepCheck import BRepCheck_Analyzer

from .kernel import Solid


logger = logging.getLogger(__name__)


class GateStatus(Enum):
    """Quality gate result status."""
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class GateResult:
    """Result of the post-build quality gate."""
    status: GateStatus
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def valid(cls, warnings: Optional[List[str]] = None) -> 'GateResult':
        return cls(GateStatus.VALID, True, [], list(warnings or []))

    @classmethod
    def invalid(cls, errors: List[str], warnings: Optional[List[str]] = None) -> 'GateResult':
        return cls(GateStatus.INVALID, False, list(errors), list(warnings or []))

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'is_valid': self.is_valid,
            'errors': self.errors,
            'warnings': self.warnings,
        }


def check_solid(
    solid: Optional[Solid],
    max_extent: Optional[Tuple[float, float, float]] = None,
    min_volume: float = 1e-6,
) -> GateResult:
    """
    Validate a built solid.

    Checks:
    - Solid exists and has not been disposed
    - B-Rep topology is valid
    - Volume is positive
    - Bounding box fits max_extent (x, y, z sizes), when given
    """
    if solid is None:
        return GateResult.invalid(["Solid is null"])
    if solid.disposed:
        return GateResult.invalid(["Solid has been disposed"])

    errors = []
    warnings = []
    shape = solid.shape

    if not BRepCheck_Analyzer(shape.wrapped).IsValid():
        errors.append("Shape B-Rep is invalid")

    volume = solid.volume
    if volume <= min_volume:
        errors.append(f"Solid volume too small: {volume:.6f}")

    if max_extent is not None:
        (x0, y0, z0), (x1, y1, z1) = solid.bounding_box()
        size = (x1 - x0, y1 - y0, z1 - z0)
        for axis, actual, limit in zip("XYZ", size, max_extent):
            if actual > limit:
                warnings.append(f"{axis} extent {actual:.2f} exceeds {limit:.2f}")

    if errors:
        logger.warning(f"Quality gate failed: {errors}")
        return GateResult.invalid(errors, warnings)
    return GateResult.valid(warnings)
