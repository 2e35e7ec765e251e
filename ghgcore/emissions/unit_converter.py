# -*- coding: utf-8 -*-
"""
Activity Unit Conversion

Converts activity quantities into the unit an emission factor is expressed
in. All conversions are exact Decimal operations; unknown or incompatible
units fail loudly with UnitConversionError.

Supports:
- Energy: kWh, MWh, GWh, MMBtu, therms, GJ, MJ, Btu
- Volume: liters, gallons, m3, ccf, mcf, scf
- Mass: kg, tonnes, short tons, lbs, g
- Distance: km, miles, m
"""

from decimal import Decimal
from typing import Dict, List, Optional, Union

from ghgcore.exceptions import UnitConversionError


class UnitConverter:
    """
    Deterministic unit converter for activity data.

    Units are matched case-insensitively; spaces and hyphens are treated as
    underscores, so ``"Short Ton"`` and ``"short_ton"`` are the same unit.
    """

    # Energy conversions (to kWh as base unit)
    ENERGY_TO_KWH: Dict[str, Decimal] = {
        'kwh': Decimal('1'),
        'mwh': Decimal('1000'),
        'gwh': Decimal('1000000'),
        'mmbtu': Decimal('293.071'),
        'therm': Decimal('29.3071'),
        'therms': Decimal('29.3071'),
        'gj': Decimal('277.778'),
        'mj': Decimal('0.277778'),
        'btu': Decimal('0.000293071'),
    }

    # Volume conversions (to liters as base unit)
    VOLUME_TO_LITERS: Dict[str, Decimal] = {
        'liter': Decimal('1'),
        'liters': Decimal('1'),
        'litre': Decimal('1'),
        'litres': Decimal('1'),
        'l': Decimal('1'),
        'gallon': Decimal('3.78541'),  # US gallon
        'gallons': Decimal('3.78541'),
        'gal': Decimal('3.78541'),
        'm3': Decimal('1000'),
        'cubic_meter': Decimal('1000'),
        'cubic_meters': Decimal('1000'),
        'ccf': Decimal('2831.68'),  # 100 cubic feet
        'mcf': Decimal('28316.8'),  # 1000 cubic feet
        'scf': Decimal('28.3168'),
    }

    # Mass conversions (to kg as base unit)
    MASS_TO_KG: Dict[str, Decimal] = {
        'kg': Decimal('1'),
        'kilogram': Decimal('1'),
        'kilograms': Decimal('1'),
        'tonne': Decimal('1000'),
        'tonnes': Decimal('1000'),
        'metric_ton': Decimal('1000'),
        'metric_tons': Decimal('1000'),
        't': Decimal('1000'),
        'short_ton': Decimal('907.185'),
        'short_tons': Decimal('907.185'),
        'ton': Decimal('907.185'),  # US ton
        'tons': Decimal('907.185'),
        'lb': Decimal('0.453592'),
        'lbs': Decimal('0.453592'),
        'pound': Decimal('0.453592'),
        'pounds': Decimal('0.453592'),
        'g': Decimal('0.001'),
        'gram': Decimal('0.001'),
        'grams': Decimal('0.001'),
    }

    # Distance conversions (to km as base unit)
    DISTANCE_TO_KM: Dict[str, Decimal] = {
        'km': Decimal('1'),
        'kilometer': Decimal('1'),
        'kilometers': Decimal('1'),
        'mile': Decimal('1.60934'),
        'miles': Decimal('1.60934'),
        'mi': Decimal('1.60934'),
        'm': Decimal('0.001'),
        'meter': Decimal('0.001'),
        'meters': Decimal('0.001'),
    }

    _ALIASES: Dict[str, str] = {
        'm³': 'm3',
        'kilowatt_hour': 'kwh',
        'kilowatt_hours': 'kwh',
        'megawatt_hour': 'mwh',
        'megawatt_hours': 'mwh',
    }

    def __init__(self):
        self.conversion_tables = {
            'energy': self.ENERGY_TO_KWH,
            'volume': self.VOLUME_TO_LITERS,
            'mass': self.MASS_TO_KG,
            'distance': self.DISTANCE_TO_KM,
        }

    @classmethod
    def normalize_unit(cls, unit: str) -> str:
        """Lowercase a unit and fold spaces and hyphens to underscores."""
        normalized = unit.strip().lower().replace(' ', '_').replace('-', '_')
        return cls._ALIASES.get(normalized, normalized)

    def convert(
        self,
        value: Union[int, float, str, Decimal],
        from_unit: str,
        to_unit: str,
    ) -> Decimal:
        """
        Convert value from one unit to another.

        Args:
            value: Quantity to convert
            from_unit: Source unit (e.g. 'gallons', 'kWh')
            to_unit: Target unit (e.g. 'liters', 'MWh')

        Returns:
            Converted quantity as Decimal

        Raises:
            UnitConversionError: If units are unknown or incompatible
        """
        if not isinstance(value, Decimal):
            value = Decimal(str(value))

        source = self.normalize_unit(from_unit)
        target = self.normalize_unit(to_unit)
        if source == target:
            return value

        from_category = self._get_unit_category(source)
        to_category = self._get_unit_category(target)

        if from_category is None:
            raise UnitConversionError(
                f"Unknown unit: {from_unit}", from_unit=from_unit, to_unit=to_unit,
            )
        if to_category is None:
            raise UnitConversionError(
                f"Unknown unit: {to_unit}", from_unit=from_unit, to_unit=to_unit,
            )
        if from_category != to_category:
            raise UnitConversionError(
                f"Cannot convert between different unit types: "
                f"{from_unit} ({from_category}) -> {to_unit} ({to_category})",
                from_unit=from_unit,
                to_unit=to_unit,
            )

        table = self.conversion_tables[from_category]
        return value * table[source] / table[target]

    def _get_unit_category(self, unit: str) -> Optional[str]:
        for category, conversion_table in self.conversion_tables.items():
            if unit in conversion_table:
                return category
        return None

    def same_unit(self, unit1: str, unit2: str) -> bool:
        """True if both strings name the same unit after normalization."""
        return self.normalize_unit(unit1) == self.normalize_unit(unit2)

    def is_compatible(self, unit1: str, unit2: str) -> bool:
        """
        Check if two units are convertible (same category).

        Identical unknown units are compatible with each other.
        """
        if self.same_unit(unit1, unit2):
            return True
        category1 = self._get_unit_category(self.normalize_unit(unit1))
        category2 = self._get_unit_category(self.normalize_unit(unit2))
        return category1 is not None and category1 == category2

    def get_unit_category(self, unit: str) -> str:
        """
        Get category for a unit.

        Raises:
            UnitConversionError: If unit unknown
        """
        category = self._get_unit_category(self.normalize_unit(unit))
        if category is None:
            raise UnitConversionError(f"Unknown unit: {unit}", from_unit=unit)
        return category

    def list_supported_units(self, category: Optional[str] = None) -> Dict[str, List[str]]:
        """List supported units, optionally for one category."""
        if category:
            if category not in self.conversion_tables:
                raise ValueError(f"Unknown category: {category}")
            return {category: list(self.conversion_tables[category].keys())}

        return {
            cat: list(table.keys())
            for cat, table in self.conversion_tables.items()
        }
