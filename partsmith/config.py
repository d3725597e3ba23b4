"""
Configuration module for YAML-based settings.

Handles reading/writing of config files with kernel tolerances, edit
session timing, logging level and per-product preset values.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import logging

import yaml


logger = logging.getLogger(__name__)


@dataclass
class KernelConfig:
    """Tessellation and export tolerances."""
    mesh_tolerance: float = 0.1
    angular_tolerance: float = 0.5
    export_tolerance: float = 0.001
    export_angular_tolerance: float = 0.1

    def to_dict(self) -> dict:
        return {
            'mesh_tolerance': self.mesh_tolerance,
            'angular_tolerance': self.angular_tolerance,
            'export_tolerance': self.export_tolerance,
            'export_angular_tolerance': self.export_angular_tolerance,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'KernelConfig':
        return cls(
            mesh_tolerance=d.get('mesh_tolerance', 0.1),
            angular_tolerance=d.get('angular_tolerance', 0.5),
            export_tolerance=d.get('export_tolerance', 0.001),
            export_angular_tolerance=d.get('export_angular_tolerance', 0.1),
        )


@dataclass
class SessionConfig:
    """Interactive edit session timing."""
    debounce_seconds: float = 0.3
    max_adjust_iterations: int = 10

    def __post_init__(self):
        if self.debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {self.debounce_seconds}")
        if self.max_adjust_iterations < 1:
            raise ValueError(f"max_adjust_iterations must be >= 1, got {self.max_adjust_iterations}")

    def to_dict(self) -> dict:
        return {
            'debounce_seconds': self.debounce_seconds,
            'max_adjust_iterations': self.max_adjust_iterations,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'SessionConfig':
        return cls(
            debounce_seconds=d.get('debounce_seconds', 0.3),
            max_adjust_iterations=d.get('max_adjust_iterations', 10),
        )


@dataclass
class Config:
    """Main configuration container."""
    version: str = "1.0"
    kernel: KernelConfig = field(default_factory=KernelConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    log_level: str = "INFO"
    presets: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'kernel': self.kernel.to_dict(),
            'session': self.session.to_dict(),
            'logging': {'level': self.log_level},
            'presets': {k: dict(v) for k, v in self.presets.items()},
        }

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> 'Config':
        d = d or {}
        presets = {}
        for product_id, values in (d.get('presets') or {}).items():
            if not isinstance(values, dict):
                logger.warning(f"Ignoring preset for {product_id}: expected a mapping")
                continue
            presets[product_id] = {k: float(v) for k, v in values.items()}
        return cls(
            version=str(d.get('version', '1.0')),
            kernel=KernelConfig.from_dict(d.get('kernel') or {}),
            session=SessionConfig.from_dict(d.get('session') or {}),
            log_level=str((d.get('logging') or {}).get('level', 'INFO')).upper(),
            presets=presets,
        )

    def save(self, path: Path) -> None:
        """Save config to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True,
                      default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: Path) -> 'Config':
        """Load config from YAML file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)

    def preset_values(self, product_id: str, defaults: Dict[str, float]) -> Dict[str, float]:
        """Defaults overlaid with the preset for a product, if any."""
        values = dict(defaults)
        values.update(self.presets.get(product_id, {}))
        return values


def get_config_path() -> Path:
    """Get default config file path."""
    return Path('config.yaml')


def load_config(path: Optional[Path] = None) -> Config:
    """Load the config file if it exists, otherwise defaults."""
    path = Path(path) if path else get_config_path()
    if not path.exists():
        return Config()
    return Config.load(path)
