"""Canonical measurement units and alias resolution."""

import re
from enum import Enum
from typing import Dict, List, Optional, Tuple


class CanonicalUnit(str, Enum):
    CUP = "CUP"
    TABLESPOON = "TABLESPOON"
    TEASPOON = "TEASPOON"
    FLUID_OUNCE = "FLUID_OUNCE"
    PINT = "PINT"
    QUART = "QUART"
    GALLON = "GALLON"
    MILLILITER = "MILLILITER"
    LITER = "LITER"
    POUND = "POUND"
    WEIGHT_OUNCE = "WEIGHT_OUNCE"
    GRAM = "GRAM"
    KILOGRAM = "KILOGRAM"
    EACH = "EACH"
    CLOVE = "CLOVE"
    SLICE = "SLICE"
    PIECE = "PIECE"
    CAN = "CAN"
    PACKAGE = "PACKAGE"
    JAR = "JAR"
    STICK = "STICK"
    BUNCH = "BUNCH"
    HEAD = "HEAD"
    STALK = "STALK"
    SPRIG = "SPRIG"
    LEAF = "LEAF"
    PINCH = "PINCH"
    DASH = "DASH"
    HANDFUL = "HANDFUL"
    TO_TASTE = "TO_TASTE"


# Spellings, abbreviations and plurals; the canonical name itself always resolves too.
UNIT_ALIASES: Dict[CanonicalUnit, Tuple[str, ...]] = {
    # Volume
    CanonicalUnit.CUP: ("cup", "cups", "c"),
    CanonicalUnit.TABLESPOON: ("tablespoon", "tablespoons", "tbsp", "tbsps", "tbs", "tbl", "tblsp"),
    CanonicalUnit.TEASPOON: ("teaspoon", "teaspoons", "tsp", "tsps"),
    CanonicalUnit.FLUID_OUNCE: ("fluid ounce", "fluid ounces", "fl oz", "floz", "fl ounce"),
    CanonicalUnit.PINT: ("pint", "pints", "pt", "pts"),
    CanonicalUnit.QUART: ("quart", "quarts", "qt", "qts"),
    CanonicalUnit.GALLON: ("gallon", "gallons", "gal", "gals"),
    CanonicalUnit.MILLILITER: ("milliliter", "milliliters", "millilitre", "millilitres", "ml"),
    CanonicalUnit.LITER: ("liter", "liters", "litre", "litres", "l"),
    # Weight
    CanonicalUnit.POUND: ("pound", "pounds", "lb", "lbs"),
    CanonicalUnit.WEIGHT_OUNCE: ("ounce", "ounces", "oz", "ozs"),
    CanonicalUnit.GRAM: ("gram", "grams", "g", "gr"),
    CanonicalUnit.KILOGRAM: ("kilogram", "kilograms", "kg", "kgs"),
    # Count / pieces
    CanonicalUnit.EACH: ("each", "ea", "whole"),
    CanonicalUnit.CLOVE: ("clove", "cloves"),
    CanonicalUnit.SLICE: ("slice", "slices"),
    CanonicalUnit.PIECE: ("piece", "pieces", "pc", "pcs"),
    CanonicalUnit.CAN: ("can", "cans", "tin", "tins"),
    CanonicalUnit.PACKAGE: ("package", "packages", "pkg", "pkgs", "packet", "packets"),
    CanonicalUnit.JAR: ("jar", "jars"),
    CanonicalUnit.STICK: ("stick", "sticks"),
    CanonicalUnit.BUNCH: ("bunch", "bunches"),
    CanonicalUnit.HEAD: ("head", "heads"),
    CanonicalUnit.STALK: ("stalk", "stalks", "rib", "ribs"),
    CanonicalUnit.SPRIG: ("sprig", "sprigs"),
    CanonicalUnit.LEAF: ("leaf", "leaves"),
    # Special
    CanonicalUnit.PINCH: ("pinch", "pinches"),
    CanonicalUnit.DASH: ("dash", "dashes"),
    CanonicalUnit.HANDFUL: ("handful", "handfuls"),
    CanonicalUnit.TO_TASTE: ("to taste",),
}

# Ingredient names measured in these units are singular ("2 cloves garlic", "3 carrots")
COUNT_UNITS = frozenset(
    {
        CanonicalUnit.EACH,
        CanonicalUnit.CLOVE,
        CanonicalUnit.HEAD,
        CanonicalUnit.STALK,
        CanonicalUnit.SPRIG,
        CanonicalUnit.LEAF,
        CanonicalUnit.PIECE,
        CanonicalUnit.SLICE,
    }
)


def _normalize_unit_key(token: str) -> str:
    key = token.replace(".", " ").replace("_", " ")
    return re.sub(r"\s+", " ", key).strip().lower()


def _build_alias_lookup() -> Dict[str, CanonicalUnit]:
    lookup: Dict[str, CanonicalUnit] = {}
    for unit in CanonicalUnit:
        lookup[_normalize_unit_key(unit.value)] = unit
        for alias in UNIT_ALIASES.get(unit, ()):
            lookup[_normalize_unit_key(alias)] = unit
    return lookup


_ALIAS_LOOKUP = _build_alias_lookup()

# Longest aliases first so "fl oz" wins over "fl"
MULTI_WORD_ALIASES = tuple(
    sorted((key for key in _ALIAS_LOOKUP if " " in key), key=len, reverse=True)
)


def resolve_unit_alias(token: Optional[str]) -> Optional[CanonicalUnit]:
    """Map a unit token ("Tbsp.", "tablespoons", "TABLESPOON") to its canonical unit.

    Lookup is case-insensitive and tolerant of periods and regular plurals.
    Unknown tokens return None; callers fold them into the ingredient name.
    """
    if not isinstance(token, str):
        return None
    key = _normalize_unit_key(token)
    if not key:
        return None
    unit = _ALIAS_LOOKUP.get(key)
    if unit is not None:
        return unit
    for suffix in ("es", "s"):
        if key.endswith(suffix) and len(key) > len(suffix) + 1:
            unit = _ALIAS_LOOKUP.get(key[: -len(suffix)])
            if unit is not None:
                return unit
    return None


def unit_values() -> List[str]:
    """All canonical unit values, in declaration order."""
    return [unit.value for unit in CanonicalUnit]
