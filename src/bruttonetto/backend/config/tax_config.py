"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import (
    ConfigurationError,
    ContributionRates,
    FamilyBonusConfig,
    IncomeTaxConfig,
    InverseSearchConfig,
    PayrollConfig,
    PensionerCreditConfig,
    PhaseOutAmount,
    RefundCapConfig,
    SingleEarnerCreditConfig,
    SocialInsuranceConfig,
    SpecialPaymentBracket,
    SpecialPaymentConfig,
    TaxBracket,
    TaxConfiguration,
    TrafficCreditConfig,
)

_LOGGER = logging.getLogger(__name__)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
DEFAULT_CONFIG_FILE = CONFIG_DIRECTORY / "2026.yaml"
CONFIG_PATH_ENV = "BRUTTONETTO_TAX_CONFIG"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


def resolve_config_path(path: str | os.PathLike[str] | None = None) -> Path:
    """Return the tax table path from ``path``, the environment, or the default."""

    if path is not None:
        return Path(path).resolve()

    override = os.getenv(CONFIG_PATH_ENV, "").strip()
    if override:
        return Path(override).resolve()

    return DEFAULT_CONFIG_FILE


@lru_cache(maxsize=8)
def _load_from_path(config_file: Path) -> TaxConfiguration:
    if not config_file.exists():
        raise FileNotFoundError(f"Tax configuration file missing: {config_file}")

    raw_config = _load_yaml(config_file)

    try:
        configuration = TaxConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(
            f"Configuration validation failed for {config_file.name}: {error}"
        ) from error

    _LOGGER.debug(
        "Loaded tax configuration for %s from %s", configuration.year, config_file
    )
    return configuration


def load_tax_configuration(
    path: str | os.PathLike[str] | None = None,
) -> TaxConfiguration:
    """Load and cache the tax table used by the calculators."""

    return _load_from_path(resolve_config_path(path))


def clear_configuration_cache() -> None:
    """Drop cached tax tables so the next load re-reads from disk."""

    _load_from_path.cache_clear()


__all__ = [
    "CONFIG_DIRECTORY",
    "CONFIG_PATH_ENV",
    "ConfigurationError",
    "ContributionRates",
    "DEFAULT_CONFIG_FILE",
    "FamilyBonusConfig",
    "IncomeTaxConfig",
    "InverseSearchConfig",
    "PayrollConfig",
    "PensionerCreditConfig",
    "PhaseOutAmount",
    "RefundCapConfig",
    "SingleEarnerCreditConfig",
    "SocialInsuranceConfig",
    "SpecialPaymentBracket",
    "SpecialPaymentConfig",
    "TaxBracket",
    "TaxConfiguration",
    "TrafficCreditConfig",
    "clear_configuration_cache",
    "load_tax_configuration",
    "resolve_config_path",
]
