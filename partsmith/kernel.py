"""
Kernel module: how the build123d B-rep kernel is driven.

Provides lazy, idempotent kernel initialisation, the Solid capability
wrapper handed to callers, and the primitive operations the geometry
builders compose (profiles, extrude, loft, cylinder, helical thread).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple
import logging
import threading
import time

import numpy as np

from build123d import (
    Align,
    Axis,
    Box,
    BuildLine,
    BuildSketch,
    Circle,
    Cylinder,
    Helix,
    Plane,
    Polyline,
    Pos,
    RegularPolygon,
    export_step,
    export_stl,
    extrude,
    loft,
    make_face,
    sweep,
)

from .errors import KernelInitError, PartsmithError, SolidDisposedError


logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_initialized = False

_BASE_ALIGN = (Align.CENTER, Align.CENTER, Align.MIN)
_AXES = {'X': Axis.X, 'Y': Axis.Y, 'Z': Axis.Z}


def ensure_kernel() -> None:
    """
    Initialise the kernel once per process.

    Concurrent first callers wait on the single in-flight initialisation
    instead of racing. A failed initialisation is reported and may be
    retried by a later call.
    """
    global _initialized
    if _initialized:
        return

    with _init_lock:
        if _initialized:
            return
        start = time.perf_counter()
        logger.info("Initialising B-rep kernel...")
        try:
            # First boolean and tessellation load the OCCT toolkits
            warmup = Box(2, 2, 2) - Cylinder(0.5, 4)
            warmup.tessellate(0.5)
        except Exception as e:
            logger.error(f"Kernel initialisation failed: {e}")
            raise KernelInitError(f"Kernel initialisation failed: {e}") from e
        _initialized = True
        logger.info(f"Kernel ready ({(time.perf_counter() - start) * 1000:.1f}ms)")


def is_kernel_initialized() -> bool:
    return _initialized


@dataclass
class Mesh:
    """Triangle mesh produced by tessellation."""
    vertices: np.ndarray   # (N, 3) float
    triangles: np.ndarray  # (M, 3) int

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.triangles.shape[0])


class Solid:
    """
    Opaque handle to a kernel solid.

    Exposes only what consumers need: booleans, rigid moves, tessellation
    and export. A disposed Solid releases its kernel shape and rejects
    any further use.
    """

    def __init__(self, shape):
        self._shape = shape
        self._disposed = False

    @property
    def shape(self):
        if self._disposed:
            raise SolidDisposedError("Solid has been disposed")
        return self._shape

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        self._shape = None
        self._disposed = True

    def fuse(self, *others: 'Solid') -> 'Solid':
        return Solid(self.shape.fuse(*[o.shape for o in others]))

    def cut(self, *tools: 'Solid') -> 'Solid':
        return Solid(self.shape.cut(*[t.shape for t in tools]))

    def translate(self, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> 'Solid':
        return Solid(Pos(x, y, z) * self.shape)

    def rotate(self, axis: str, angle: float) -> 'Solid':
        """Rotate about a global axis ('X', 'Y' or 'Z') by degrees."""
        return Solid(self.shape.rotate(_AXES[axis.upper()], angle))

    @property
    def volume(self) -> float:
        return self.shape.volume

    def bounding_box(self) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
        bbox = self.shape.bounding_box()
        return (
            (bbox.min.X, bbox.min.Y, bbox.min.Z),
            (bbox.max.X, bbox.max.Y, bbox.max.Z),
        )

    def mesh(self, tolerance: float = 0.1, angular_tolerance: float = 0.5) -> Mesh:
        """Tessellate to a triangle mesh (lower tolerance = more detail)."""
        vertices, triangles = self.shape.tessellate(tolerance, angular_tolerance)
        return Mesh(
            vertices=np.array([(v.X, v.Y, v.Z) for v in vertices], dtype=float).reshape(-1, 3),
            triangles=np.array(triangles, dtype=np.int64).reshape(-1, 3),
        )

    def export_stl(self, path: Path, tolerance: float = 0.001, angular_tolerance: float = 0.1) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not export_stl(self.shape, str(path), tolerance=tolerance,
                          angular_tolerance=angular_tolerance):
            raise PartsmithError(f"STL export failed: {path}")
        return path

    def export_step(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not export_step(self.shape, str(path)):
            raise PartsmithError(f"STEP export failed: {path}")
        return path


class Build123dKernel:
    """Primitive operations backed by build123d (algebra mode)."""

    def circle(self, radius: float, z: float = 0.0):
        """Circular profile on the XY plane at height z."""
        return Pos(0, 0, z) * Circle(radius)

    def polygon(self, radius: float, sides: int, z: float = 0.0):
        """Regular polygon profile (circumscribed radius) at height z."""
        return Pos(0, 0, z) * RegularPolygon(radius, sides)

    def extrude(self, profile, height: float) -> Solid:
        return Solid(extrude(profile, amount=height))

    def loft(self, bottom, top) -> Solid:
        return Solid(loft([bottom, top]))

    def cylinder(self, radius: float, height: float, z: float = 0.0) -> Solid:
        """Cylinder along +Z with its base at height z."""
        return Solid(Pos(0, 0, z) * Cylinder(radius, height, align=_BASE_ALIGN))

    def thread(
        self,
        radius: float,
        pitch: float,
        height: float,
        root_width: float,
        apex_width: float,
        tooth_height: float,
    ) -> Solid:
        """
        Helical thread teeth starting at z=0.

        A trapezoidal tooth (root_width at the root radius, apex_width at
        the tip) is swept along a helix. Positive tooth_height grows the
        teeth outward (external thread), negative grows them inward
        (internal thread). The root is embedded slightly past the root
        radius so the teeth overlap whatever they are fused to, and the
        sweep is trimmed to [0, height].
        """
        direction = 1.0 if tooth_height >= 0 else -1.0
        embed = 0.1 * abs(tooth_height)
        root_x = radius - direction * embed
        apex_x = radius + tooth_height

        # Plane.XZ maps local (x, y) to global (X, Z)
        with BuildSketch(Plane.XZ) as tooth:
            with BuildLine():
                Polyline(
                    (root_x, -root_width / 2),
                    (apex_x, -apex_width / 2),
                    (apex_x, apex_width / 2),
                    (root_x, root_width / 2),
                    close=True,
                )
            make_face()

        helix = Helix(pitch=pitch, height=height, radius=radius)
        teeth = sweep(tooth.sketch, path=helix, is_frenet=True)

        envelope_radius = max(radius, apex_x) + 1.0
        envelope = Cylinder(envelope_radius, height, align=_BASE_ALIGN)
        return Solid(teeth & envelope)


_DEFAULT_KERNEL = Build123dKernel()


def default_kernel() -> Build123dKernel:
    """The process-wide build123d kernel (stateless)."""
    return _DEFAULT_KERNEL
