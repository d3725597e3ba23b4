"""
Partsmith - parametric part generator

CLI entry point with four modes:
  --list     : List products and their parameters
  --validate : Validate values (defaults + preset + --set overrides)
  --export   : Validate, adjust, build and export one model file
  (none)     : Random mode - export models from random valid values
"""

import argparse
import random
import sys
from pathlib import Path
from typing import Dict, List, Optional
import logging

from .config import Config, get_config_path, load_config
from .generator import (
    GenerationStatus, batch_generate, generate, random_values,
    save_generation_log, timestamped_filename, FILE_SUFFIXES,
)
from .products import Product, ProductRegistry, create_registry
from .errors import UnknownProductError


logger = logging.getLogger(__name__)


def parse_overrides(pairs: List[str]) -> Dict[str, float]:
    """Parse repeated `id=value` arguments."""
    overrides = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition('=')
        if not sep or not key:
            raise ValueError(f"Expected id=value, got {pair!r}")
        try:
            overrides[key.strip()] = float(raw)
        except ValueError:
            raise ValueError(f"Value for {key} is not a number: {raw!r}") from None
    return overrides


def resolve_values(product: Product, config: Config, overrides: Dict[str, float]) -> Dict[str, float]:
    unknown = [k for k in overrides if k not in product.schema]
    if unknown:
        raise ValueError(f"{product.id} has no parameter(s): {', '.join(unknown)}")
    values = config.preset_values(product.id, product.defaults())
    values.update(overrides)
    return values


def run_list_mode(registry: ProductRegistry) -> int:
    """List mode (--list): print products and parameter ranges."""
    for product in registry:
        print(f"{product.id} ({product.slug})")
        for key, definition in product.schema.items():
            if definition.options:
                print(f"  {key:<18} {definition.kind.value} {list(definition.options)} "
                      f"default={definition.default:g}")
            else:
                print(f"  {key:<18} {definition.min:g}..{definition.max:g} step {definition.step:g}"
                      f"{definition.unit} default={definition.default:g}")
    return 0


def run_validate_mode(product: Product, values: Dict[str, float]) -> int:
    """Validate mode (--validate): report errors and dimensions."""
    logger.info("=== Validate Mode ===")
    result = product.validate(values)

    if result.is_valid:
        print(f"\n[{product.id}] values are valid")
        for readout in product.dimensions(values):
            print(f"  {readout.key:<24} {readout.value:.{readout.precision}f}{readout.unit}")
        return 0

    print(f"\n[{product.id}] {len(result.errors)} error(s)")
    for error in result.errors:
        code = f" [{error.code}]" if error.code else ""
        print(f"  {error.parameter_id}: {error.message}{code}")

    adjustment = product.adjust(values)
    if adjustment.changed:
        print("\nSuggested corrections:")
        for correction in adjustment.corrections:
            print(f"  {correction}")
    return 1


def run_export_mode(
    product: Product,
    values: Dict[str, float],
    output_dir: Path,
    fmt: str,
    config: Config,
    allow_correction: bool,
) -> int:
    """Export mode (--export): generate one model file."""
    logger.info("=== Export Mode ===")
    output_path = output_dir / (timestamped_filename(product.slug) + FILE_SUFFIXES[fmt])

    result = generate(product, values, output_path, fmt, allow_correction, config.kernel)
    if result.status == GenerationStatus.FAILED:
        logger.error(f"  -> FAILED: {result.error_message}")
        return 1

    logger.info(f"  -> {result.status.value} ({result.generation_time_ms:.1f}ms)")
    print(f"\n[Export Complete]")
    print(f"  Output: {result.output_path}")
    if result.adjustment and result.adjustment.changed:
        print(f"  Corrections: {', '.join(result.adjustment.corrections)}")
    return 0


def run_random_mode(
    product: Product,
    count: int,
    output_dir: Path,
    fmt: str,
    config: Config,
    seed: Optional[int],
) -> int:
    """Random mode (no option): export models from random valid values."""
    logger.info("=== Random Mode ===")
    rng = random.Random(seed)
    value_list = [random_values(product, rng) for _ in range(count)]

    results = batch_generate(
        product, value_list, output_dir, fmt,
        name_prefix=timestamped_filename(product.slug),
        kernel_config=config.kernel,
    )
    log_path = output_dir / f"{product.slug}_generation_log.json"
    save_generation_log(results, log_path)

    success_count = sum(1 for r in results if r.status != GenerationStatus.FAILED)
    print(f"\n[Random Generation Complete]")
    print(f"  Success: {success_count}/{len(results)}")
    print(f"  Output: {output_dir}")
    print(f"  Log: {log_path}")

    return 0 if success_count == len(results) else 1


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Parametric part generator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  --list       List products and parameters
  --validate   Validate values and show derived dimensions
  --export     Build and export one model
  (none)       Random mode: export models from random valid values

Examples:
  python -m partsmith.main --list
  python -m partsmith.main hose-adapter --validate --set length=80
  python -m partsmith.main thread-adapter --export --format step
  python -m partsmith.main drain-strainer --count 5 --seed 1
"""
    )

    parser.add_argument('product', nargs='?', help='Product id or slug')
    parser.add_argument('--list', action='store_true', help='List products and parameters')
    parser.add_argument('--validate', action='store_true', help='Validate values only')
    parser.add_argument('--export', action='store_true', help='Export a single model')
    parser.add_argument(
        '--set',
        action='append',
        default=[],
        metavar='ID=VALUE',
        help='Override a parameter value (repeatable)'
    )
    parser.add_argument(
        '--format',
        choices=sorted(FILE_SUFFIXES),
        default='stl',
        help='Export format (default: stl)'
    )
    parser.add_argument(
        '--no-correction',
        action='store_true',
        help='Fail instead of adjusting invalid values'
    )
    parser.add_argument('--count', type=int, default=1, help='Models to generate in random mode')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument(
        '--output-dir',
        type=Path,
        default=Path('output'),
        help='Output directory for generated files (default: output/)'
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=get_config_path(),
        help='Config file path (default: config.yaml)'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = load_config(args.config)

    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    registry = create_registry()
    if args.list:
        return run_list_mode(registry)

    if args.validate and args.export:
        logger.error("Cannot use --validate and --export together")
        return 1
    if not args.product:
        logger.error(f"A product is required (one of: {', '.join(registry.ids)})")
        return 1

    try:
        product = registry.lookup(args.product)
    except UnknownProductError as e:
        logger.error(str(e))
        return 1

    try:
        values = resolve_values(product, config, parse_overrides(args.set))
    except ValueError as e:
        logger.error(str(e))
        return 1

    if args.validate:
        return run_validate_mode(product, values)
    elif args.export:
        return run_export_mode(
            product, values, args.output_dir, args.format, config, not args.no_correction,
        )
    else:
        return run_random_mode(product, args.count, args.output_dir, args.format, config, args.seed)


if __name__ == '__main__':
    sys.exit(main())
