"""
Vehicle category taxonomy for the flash-report volume series.

Every historical series is keyed by one ``VehicleCategory``.  Upstream volume
data labels categories inconsistently ("Two Wheeler", "2-wheeler", "2W", ...);
``normalize_category()`` maps any known alias onto the canonical key used in
chart payloads.

This module has NO imports from any other ``race_forecaster`` package.
"""

from enum import StrEnum


class VehicleCategory(StrEnum):
    """Canonical category keys as they appear in overall-chart payloads."""

    TWO_WHEELER = "2W"
    THREE_WHEELER = "3W"
    PASSENGER = "PV"
    TRACTOR = "TRAC"
    COMMERCIAL = "CV"
    TRUCK = "Truck"
    BUS = "Bus"
    CONSTRUCTION_EQUIPMENT = "CE"
    TOTAL = "Total"


# lower-cased alias → canonical category
CATEGORY_ALIASES: dict[str, VehicleCategory] = {
    "two wheeler":            VehicleCategory.TWO_WHEELER,
    "two-wheeler":            VehicleCategory.TWO_WHEELER,
    "2-wheeler":              VehicleCategory.TWO_WHEELER,
    "2w":                     VehicleCategory.TWO_WHEELER,
    "three wheeler":          VehicleCategory.THREE_WHEELER,
    "three-wheeler":          VehicleCategory.THREE_WHEELER,
    "3-wheeler":              VehicleCategory.THREE_WHEELER,
    "3w":                     VehicleCategory.THREE_WHEELER,
    "passenger":              VehicleCategory.PASSENGER,
    "passenger vehicle":      VehicleCategory.PASSENGER,
    "pv":                     VehicleCategory.PASSENGER,
    "tractor":                VehicleCategory.TRACTOR,
    "trac":                   VehicleCategory.TRACTOR,
    "cv":                     VehicleCategory.COMMERCIAL,
    "commercial vehicle":     VehicleCategory.COMMERCIAL,
    "truck":                  VehicleCategory.TRUCK,
    "bus":                    VehicleCategory.BUS,
    "ce":                     VehicleCategory.CONSTRUCTION_EQUIPMENT,
    "constructionequipment":  VehicleCategory.CONSTRUCTION_EQUIPMENT,
    "construction equipment": VehicleCategory.CONSTRUCTION_EQUIPMENT,
    "construction-equipment": VehicleCategory.CONSTRUCTION_EQUIPMENT,
    "total":                  VehicleCategory.TOTAL,
}


def normalize_category(raw: str) -> VehicleCategory | None:
    """Return the canonical category for ``raw``, or ``None`` if unknown.

    Matching is case-insensitive and ignores surrounding whitespace.
    """
    key = str(raw or "").strip().lower()
    if not key:
        return None
    return CATEGORY_ALIASES.get(key)
