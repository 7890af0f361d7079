"""
Configuration management and loading.

Handles charge rates, ledger defaults, and the storage location.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import yaml


DEFAULT_DB_PATH = "site_ledger.db"
DEFAULT_OVERHEAD_PERCENT = 10.0


@dataclass(frozen=True)
class RatesConfig:
    """Statutory charge rates and working hours used for wage conversion."""
    employee_charge_rate: float = 0.23
    employer_charge_rate: float = 0.42
    hours_per_month: float = 151.67

    def __post_init__(self):
        """Validate rates are usable for conversion."""
        for name in ("employee_charge_rate", "employer_charge_rate"):
            value = getattr(self, name)
            if not _is_real(value) or not 0 <= value < 1:
                raise ValueError(f"{name} must be >= 0 and < 1")
        if not _is_real(self.hours_per_month) or self.hours_per_month <= 0:
            raise ValueError("hours_per_month must be > 0")


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    rates: RatesConfig = field(default_factory=RatesConfig)
    default_overhead_percent: float = DEFAULT_OVERHEAD_PERCENT
    db_path: str = DEFAULT_DB_PATH

    def __post_init__(self):
        """Validate ledger defaults."""
        if not _is_real(self.default_overhead_percent) or self.default_overhead_percent < 0:
            raise ValueError("default_overhead_percent must be >= 0")
        if not self.db_path:
            raise ValueError("db_path cannot be empty")


def default_config() -> AppConfig:
    """Return the configuration used when no file is given."""
    return AppConfig()


def load_config(path: str) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Every section is optional, but unknown keys are rejected so a typo never
    silently falls back to a default rate.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'rates', 'ledger', 'storage'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    rates = _parse_rates(_section(raw_config, 'rates'))

    ledger_data = _section(raw_config, 'ledger')
    _reject_unknown(ledger_data, {'default_overhead_percent'}, 'ledger')
    overhead = ledger_data.get('default_overhead_percent', DEFAULT_OVERHEAD_PERCENT)
    if not _is_real(overhead) or overhead < 0:
        raise ValueError("'default_overhead_percent' in ledger must be >= 0")

    storage_data = _section(raw_config, 'storage')
    _reject_unknown(storage_data, {'db_path'}, 'storage')
    db_path = storage_data.get('db_path', DEFAULT_DB_PATH)
    if not isinstance(db_path, str) or not db_path.strip():
        raise ValueError("'db_path' in storage must be a non-empty string")

    return AppConfig(
        rates=rates,
        default_overhead_percent=float(overhead),
        db_path=db_path
    )


def _parse_rates(data: Dict) -> RatesConfig:
    """Parse and validate the rates section.

    Args:
        data: Rates configuration data

    Returns:
        Validated RatesConfig

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {'employee_charge_rate', 'employer_charge_rate', 'hours_per_month'}
    _reject_unknown(data, allowed_keys, 'rates')

    values = {}
    for key in allowed_keys & set(data.keys()):
        value = data[key]
        if not _is_real(value):
            raise ValueError(f"'{key}' in rates must be a number")
        values[key] = float(value)

    return RatesConfig(**values)


def _section(raw_config: Dict, name: str) -> Dict:
    data = raw_config.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    return data


def _reject_unknown(data: Dict, allowed_keys: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _is_real(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
