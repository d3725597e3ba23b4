"""
Product catalog.
"""

from .registry import DimensionReadout, Product, ProductRegistry
from . import drain_strainer, hose_adapter, thread_adapter


def create_registry() -> ProductRegistry:
    """Build the product registry (call once at startup)."""
    return ProductRegistry([
        hose_adapter.PRODUCT,
        drain_strainer.PRODUCT,
        thread_adapter.PRODUCT,
    ])


__all__ = [
    'DimensionReadout',
    'Product',
    'ProductRegistry',
    'create_registry',
]
