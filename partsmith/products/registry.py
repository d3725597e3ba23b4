"""
Product registry: binds schema, domain rule, constraint function,
dimension readouts and geometry builder under a product id.

The registry is an immutable list built once at startup and handed to
consumers explicitly; there is no module-level lookup table to mutate.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..constraints import AdjustmentResult, ConstraintFunction, adjust_with_report
from ..errors import GeometryConstructionError, PartsmithError, UnknownProductError
from ..parameters import ParameterSchema, ParameterValues, default_values
from ..validation import DomainRule, ValidationResult, validate


@dataclass(frozen=True)
class DimensionReadout:
    """
    Derived, read-only dimension for display.

    `key` identifies the readout; the display label for it is looked up
    by the presentation layer.
    """
    key: str
    value: float
    unit: str = "mm"
    precision: int = 1

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'value': self.value,
            'unit': self.unit,
            'precision': self.precision,
        }


Builder = Callable[..., object]
DimensionsFunction = Callable[[Mapping[str, float]], List[DimensionReadout]]


@dataclass(frozen=True)
class Product:
    """One configurable product."""
    id: str
    slug: str
    schema: ParameterSchema
    domain_rule: DomainRule
    constraint_fn: ConstraintFunction
    builder: Builder
    dimensions_fn: Optional[DimensionsFunction] = None

    def defaults(self) -> ParameterValues:
        return default_values(self.schema)

    def validate(self, values: Mapping[str, float]) -> ValidationResult:
        return validate(self.schema, values, self.domain_rule)

    def adjust(self, values: Mapping[str, float], max_iterations: int = 10) -> AdjustmentResult:
        return adjust_with_report(self.schema, values, self.constraint_fn, max_iterations)

    def build(self, values: Mapping[str, float], kernel=None):
        """
        Run the geometry builder.

        Kernel failures (OpenCascade boolean, loft or sweep errors) surface
        as GeometryConstructionError so callers handle a single error type.
        """
        try:
            return self.builder(values, kernel)
        except PartsmithError:
            raise
        except Exception as e:
            raise GeometryConstructionError(
                self.id, message=f"kernel operation failed: {type(e).__name__}: {e}"
            ) from e

    def dimensions(self, values: Mapping[str, float]) -> List[DimensionReadout]:
        if self.dimensions_fn is None:
            return []
        return self.dimensions_fn(values)


class ProductRegistry:
    """Immutable, ordered collection of products."""

    def __init__(self, products: Iterable[Product]):
        items: Tuple[Product, ...] = tuple(products)
        ids = [p.id for p in items]
        slugs = [p.slug for p in items]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate product ids: {ids}")
        if len(set(slugs)) != len(slugs):
            raise ValueError(f"Duplicate product slugs: {slugs}")
        self._products = items

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: object) -> bool:
        return any(p.id == product_id for p in self._products)

    @property
    def ids(self) -> List[str]:
        return [p.id for p in self._products]

    def get(self, product_id: str) -> Product:
        """Get a product by id; raises UnknownProductError if missing."""
        for product in self._products:
            if product.id == product_id:
                return product
        raise UnknownProductError(f"Product not found: {product_id}")

    def by_slug(self, slug: str) -> Optional[Product]:
        return next((p for p in self._products if p.slug == slug), None)

    def lookup(self, key: str) -> Product:
        """Resolve either an id or a slug."""
        product = self.by_slug(key)
        return product if product is not None else self.get(key)
