"""
Generator module - one-shot pipeline from parameter values to a file.

Integrates validation, constraint adjustment, geometry construction,
the quality gate and STL/STEP export.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from enum import Enum
import json
import logging
import math
import random
import time

from .config import KernelConfig
from .constraints import AdjustmentResult
from .errors import DomainConstraintError, PartsmithError, SchemaBoundError
from .kernel import ensure_kernel
from .parameters import ParameterValues
from .products import Product
from .quality_gate import GateResult, check_solid
from .validation import ValidationResult


logger = logging.getLogger(__name__)

EXPORT_FORMATS = ('stl', 'step')
FILE_SUFFIXES = {'stl': '.stl', 'step': '.step'}


class GenerationStatus(Enum):
    """Status of a generation attempt."""
    SUCCESS = "success"
    SUCCESS_WITH_CORRECTION = "success_with_correction"
    FAILED = "failed"


@dataclass
class GenerationResult:
    """Result of a generation attempt."""
    status: GenerationStatus
    output_path: Optional[Path]
    values_used: ParameterValues
    adjustment: Optional[AdjustmentResult]
    validation: Optional[ValidationResult]
    error_message: Optional[str]
    generation_time_ms: float
    gate: Optional[GateResult] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            'status': self.status.value,
            'output_path': str(self.output_path) if self.output_path else None,
            'values_used': dict(self.values_used),
            'corrections_applied': self.adjustment.corrections if self.adjustment else [],
            'is_valid': self.validation.is_valid if self.validation else False,
            'errors': [e.to_dict() for e in self.validation.errors] if self.validation else [],
            'gate': self.gate.to_dict() if self.gate else None,
            'error': self.error_message,
            'generation_time_ms': self.generation_time_ms,
        }


def timestamped_filename(base: str, now: Optional[datetime] = None) -> str:
    """
    Append a timestamp to a base filename.

    >>> timestamped_filename("hose-adapter", datetime(2024, 3, 5, 14, 7, 9))
    'hose-adapter_2024-03-05_14-07-09'
    """
    now = now or datetime.now()
    return f"{base}_{now.strftime('%Y-%m-%d_%H-%M-%S')}"


def ensure_valid(validation: ValidationResult) -> None:
    """Raise the matching exception for a failed validation."""
    if validation.is_valid:
        return
    if validation.schema_errors:
        raise SchemaBoundError(validation.schema_errors)
    raise DomainConstraintError(validation.domain_errors)


def random_values(product: Product, rng: Optional[random.Random] = None) -> ParameterValues:
    """
    Draw a random value vector on the schema step grid, then adjust it.

    Enum, boolean and color parameters are drawn from their legal codes.
    """
    rng = rng or random.Random()
    values: Dict[str, float] = {}
    for key, definition in product.schema.items():
        if definition.options:
            values[key] = rng.choice(definition.options)
        else:
            steps = math.floor((definition.max - definition.min) / definition.step + 1e-9)
            values[key] = definition.min + rng.randint(0, steps) * definition.step
    return product.adjust(values).values


def _failed(start_time: float, values, adjustment, validation, message, gate=None):
    return GenerationResult(
        status=GenerationStatus.FAILED,
        output_path=None,
        values_used=dict(values),
        adjustment=adjustment,
        validation=validation,
        error_message=message,
        generation_time_ms=(time.perf_counter() - start_time) * 1000,
        gate=gate,
    )


def generate(
    product: Product,
    values: Mapping[str, float],
    output_path: Path,
    fmt: str = 'stl',
    allow_correction: bool = True,
    kernel_config: Optional[KernelConfig] = None,
    kernel=None,
) -> GenerationResult:
    """
    Generate a model file from parameter values.

    Pipeline:
    1. Validate (fail early if invalid and correction is off), then adjust
    2. Build geometry
    3. Run the quality gate
    4. Export STL or STEP
    """
    start_time = time.perf_counter()
    kernel_config = kernel_config or KernelConfig()
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt} (expected one of {EXPORT_FORMATS})")

    current = dict(values)

    # Stage 1: validation and correction
    validation = product.validate(current)
    if not validation.is_valid and not allow_correction:
        try:
            ensure_valid(validation)
        except PartsmithError as e:
            return _failed(start_time, current, None, validation, f"Invalid parameters: {e}")

    adjustment = product.adjust(current)
    current = adjustment.values
    validation = product.validate(current)
    if not validation.is_valid:
        messages = [e.message for e in validation.errors]
        logger.warning(f"{product.id}: values still invalid after adjustment: {messages}")
        return _failed(
            start_time, current, adjustment, validation,
            f"Invalid parameters after correction: {messages}",
        )

    # Stage 2: build geometry
    solid = None
    try:
        if kernel is None:
            ensure_kernel()
        solid = product.build(current, kernel)
    except PartsmithError as e:
        logger.error(f"{product.id}: geometry construction failed: {e}")
        return _failed(start_time, current, adjustment, validation, f"Geometry construction failed: {e}")

    try:
        # Stage 3: quality gate
        gate = check_solid(solid)
        if not gate.is_valid:
            return _failed(
                start_time, current, adjustment, validation,
                f"Quality gate failed: {gate.errors}", gate,
            )

        # Stage 4: export
        output_path = Path(output_path)
        try:
            if fmt == 'stl':
                solid.export_stl(
                    output_path,
                    tolerance=kernel_config.export_tolerance,
                    angular_tolerance=kernel_config.export_angular_tolerance,
                )
            else:
                solid.export_step(output_path)
        except (OSError, PartsmithError) as e:
            return _failed(start_time, current, adjustment, validation, f"Export failed: {e}", gate)
        logger.info(f"{fmt.upper()} exported to: {output_path}")
    finally:
        solid.dispose()

    status = (
        GenerationStatus.SUCCESS_WITH_CORRECTION
        if adjustment.changed
        else GenerationStatus.SUCCESS
    )

    return GenerationResult(
        status=status,
        output_path=output_path,
        values_used=current,
        adjustment=adjustment,
        validation=validation,
        error_message=None,
        generation_time_ms=(time.perf_counter() - start_time) * 1000,
        gate=gate,
    )


def batch_generate(
    product: Product,
    value_list: List[Mapping[str, float]],
    output_dir: Path,
    fmt: str = 'stl',
    name_prefix: Optional[str] = None,
    allow_correction: bool = True,
    kernel_config: Optional[KernelConfig] = None,
    kernel=None,
) -> List[GenerationResult]:
    """Generate one model file per value vector."""
    results = []
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    prefix = name_prefix or product.slug

    for i, values in enumerate(value_list):
        output_path = output_dir / f"{prefix}_{i:04d}{FILE_SUFFIXES[fmt.lower()]}"
        result = generate(product, values, output_path, fmt, allow_correction, kernel_config, kernel)
        results.append(result)

        logger.info(
            f"[{i+1}/{len(value_list)}] {result.status.value} "
            f"({result.generation_time_ms:.1f}ms)"
        )

    success = sum(1 for r in results if r.status != GenerationStatus.FAILED)
    corrected = sum(
        1 for r in results
        if r.status == GenerationStatus.SUCCESS_WITH_CORRECTION
    )

    logger.info(
        f"Batch complete: {success}/{len(results)} success "
        f"({corrected} with correction)"
    )

    return results


def save_generation_log(
    results: List[GenerationResult],
    log_path: Path
) -> None:
    """Save generation results to JSON log."""
    log_data = {
        'timestamp': datetime.now().isoformat(),
        'total': len(results),
        'success': sum(1 for r in results if r.status != GenerationStatus.FAILED),
        'results': [r.to_dict() for r in results]
    }

    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with open(log_path, 'w', encoding='utf-8') as f:
        json.dump(log_data, f, indent=2, ensure_ascii=False)
