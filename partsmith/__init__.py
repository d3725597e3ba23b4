"""
Partsmith - parametric part engine
"""

from .parameters import (
    ParameterKind, ParameterDefinition, ParameterSchema, ParameterValues, default_values,
)
from .validation import ErrorKind, ValidationError, ValidationResult, validate
from .constraints import DynamicConstraints, AdjustmentResult, adjust, adjust_with_report, effective_bounds
from .errors import (
    PartsmithError, SchemaBoundError, DomainConstraintError, GeometryConstructionError,
    KernelInitError, SolidDisposedError, UnknownProductError,
)
from .kernel import Solid, Mesh, ensure_kernel
from .products import DimensionReadout, Product, ProductRegistry, create_registry
from .session import EditSession
from .generator import generate, batch_generate, GenerationStatus, GenerationResult
from .config import Config, KernelConfig, SessionConfig

__version__ = "0.1.0"

__all__ = [
    'ParameterKind',
    'ParameterDefinition',
    'ParameterSchema',
    'ParameterValues',
    'default_values',
    'ErrorKind',
    'ValidationError',
    'ValidationResult',
    'validate',
    'DynamicConstraints',
    'AdjustmentResult',
    'adjust',
    'adjust_with_report',
    'effective_bounds',
    'PartsmithError',
    'SchemaBoundError',
    'DomainConstraintError',
    'GeometryConstructionError',
    'KernelInitError',
    'SolidDisposedError',
    'UnknownProductError',
    'Solid',
    'Mesh',
    'ensure_kernel',
    'DimensionReadout',
    'Product',
    'ProductRegistry',
    'create_registry',
    'EditSession',
    'generate',
    'batch_generate',
    'GenerationStatus',
    'GenerationResult',
    'Config',
    'KernelConfig',
    'SessionConfig',
]
