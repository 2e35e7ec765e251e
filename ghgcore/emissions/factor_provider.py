# -*- coding: utf-8 -*-
"""
Static Emission Factor Provider

Serves emission factors from a YAML registry (the bundled
``data/emission_factors.yaml`` by default). Factors are loaded and
validated once at construction and are read-only afterwards.

Registry layout::

    metadata:
      registry_version: "2024.1"
    factors:
      - factor_key: EPA-SC-NATURAL_GAS-THERM
        category: stationary_combustion
        fuel_type: natural_gas
        factor_value: "5.306"
        factor_unit: therm
        source: EPA
        vintage: "2024"

Example:
    >>> provider = StaticEmissionFactorProvider()
    >>> factors = await provider.get_emissions_factors(
    ...     category="electricity_grid", electricity_region="WECC",
    ... )
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from ghgcore.emissions.config import EmissionsEngineConfig, get_config
from ghgcore.emissions.interfaces import EmissionFactorProvider
from ghgcore.emissions.models import EmissionFactor
from ghgcore.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "data" / "emission_factors.yaml"


def _norm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().lower().replace(" ", "_").replace("-", "_")


class StaticEmissionFactorProvider(EmissionFactorProvider):
    """
    In-process factor provider backed by a fixed list of factors.

    String filters match case-insensitively, with spaces and hyphens folded
    to underscores ("Natural Gas" matches "natural_gas").
    """

    def __init__(
        self,
        factors: Optional[Iterable[Union[EmissionFactor, Dict[str, Any]]]] = None,
        registry_path: Optional[Union[str, Path]] = None,
        config: Optional[EmissionsEngineConfig] = None,
    ):
        """
        Initialize the provider.

        Args:
            factors: Explicit factors; when given, no registry file is read
            registry_path: YAML registry to load (defaults to the configured
                path, then the bundled registry)
            config: Engine configuration (defaults to the global config)
        """
        self.registry_version: Optional[str] = None
        if factors is not None:
            self.registry_path = None
            self._factors = [self._coerce(f, i) for i, f in enumerate(factors)]
        else:
            cfg = config or get_config()
            path = registry_path or cfg.factor_registry_path or DEFAULT_REGISTRY_PATH
            self.registry_path = Path(path)
            self._factors = self._load_registry(self.registry_path)
            logger.info(
                "Loaded %d emission factors (registry %s) from %s",
                len(self._factors), self.registry_version, self.registry_path,
            )

    def __len__(self) -> int:
        return len(self._factors)

    @staticmethod
    def _coerce(entry: Union[EmissionFactor, Dict[str, Any]], index: int) -> EmissionFactor:
        if isinstance(entry, EmissionFactor):
            return entry
        try:
            return EmissionFactor.model_validate(entry)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid emission factor entry at index {index}",
                context={"index": index, "errors": e.errors(include_url=False)},
            ) from e

    def _load_registry(self, path: Path) -> List[EmissionFactor]:
        """Load and validate the YAML registry."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            logger.error("Emission factor registry not found: %s", path)
            raise ConfigurationError(
                f"Emission factor registry not found: {path}",
                context={"registry_path": str(path)},
            ) from e
        except yaml.YAMLError as e:
            logger.error("Failed to parse emission factor registry %s: %s", path, e)
            raise ConfigurationError(
                f"Failed to parse emission factor registry: {path}",
                context={"registry_path": str(path)},
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("factors"), list):
            raise ConfigurationError(
                "Emission factor registry must contain a 'factors' list",
                context={"registry_path": str(path)},
            )

        self.registry_version = (data.get("metadata") or {}).get("registry_version")
        return [self._coerce(entry, i) for i, entry in enumerate(data["factors"])]

    def find_factors(
        self,
        source: Optional[str] = None,
        category: Optional[str] = None,
        fuel_type: Optional[str] = None,
        electricity_region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        """Synchronous lookup; returns factors in registry order."""
        wanted = {
            "source": _norm(source),
            "category": _norm(category),
            "fuel_type": _norm(fuel_type),
            "region": _norm(electricity_region),
        }
        return [
            factor for factor in self._factors
            if all(
                value is None or _norm(getattr(factor, attr)) == value
                for attr, value in wanted.items()
            )
        ]

    async def get_emissions_factors(
        self,
        source: Optional[str] = None,
        category: Optional[str] = None,
        fuel_type: Optional[str] = None,
        electricity_region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        return self.find_factors(
            source=source,
            category=category,
            fuel_type=fuel_type,
            electricity_region=electricity_region,
        )


__all__ = [
    "DEFAULT_REGISTRY_PATH",
    "StaticEmissionFactorProvider",
]
