"""
Error taxonomy for the parametric part engine.

Validation and constraint resolution never raise for well-typed input; they
return structured results. The exceptions here are raised by the geometry
builders, the kernel adapter and the one-shot generation pipeline.
"""

from typing import Any, List, Optional


class PartsmithError(Exception):
    """Base class for all engine errors."""


class SchemaBoundError(PartsmithError):
    """Values are missing, out of range or off the step grid."""

    def __init__(self, errors: List[Any]):
        self.errors = list(errors)
        ids = sorted({e.parameter_id for e in self.errors})
        super().__init__(f"Schema bound violations on: {', '.join(ids)}")


class DomainConstraintError(PartsmithError):
    """A product-specific feasibility rule rejected the values."""

    def __init__(self, errors: List[Any]):
        self.errors = list(errors)
        codes = [e.code or e.parameter_id for e in self.errors]
        super().__init__(f"Domain constraint violations: {', '.join(codes)}")


class GeometryConstructionError(PartsmithError):
    """
    A builder derived a degenerate quantity despite validation passing.

    Carries the name and value of the offending derived quantity so the
    gap between validation rules and builder assumptions can be traced.
    """

    def __init__(self, quantity: str, value: Optional[float] = None, message: str = ""):
        self.quantity = quantity
        self.value = value
        detail = message or "degenerate derived quantity"
        if value is not None:
            text = f"{quantity}={value:.4f}: {detail}"
        else:
            text = f"{quantity}: {detail}"
        super().__init__(text)


class KernelInitError(PartsmithError):
    """The B-rep kernel could not be initialised."""


class SolidDisposedError(PartsmithError):
    """A Solid was used after it had been disposed."""


class UnknownProductError(PartsmithError, KeyError):
    """No product is registered under the requested id or slug."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown product"
