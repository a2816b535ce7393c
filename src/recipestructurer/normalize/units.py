"""Unit normalization rules for recipe amounts.

Every amount ends up in grams (``g``) or milliliters (``ml``). The same rules
are rendered into the extraction instructions, which is where the conversion
is actually performed for free-text recipes; the local ``normalize`` function
applies them to already-split quantity/unit pairs.
"""

import re
from dataclasses import dataclass

from recipestructurer.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Unit Conversion Tables
# =============================================================================

CUP_ML = 250.0
TABLESPOON_ML = 15.0
TEASPOON_ML = 5.0

# Volume conversions (base unit: ml)
VOLUME_UNITS: dict[str, float] = {
    # Metric
    "ml": 1.0,
    "milliliter": 1.0,
    "milliliters": 1.0,
    "millilitre": 1.0,
    "millilitres": 1.0,
    "l": 1000.0,
    "liter": 1000.0,
    "liters": 1000.0,
    "litre": 1000.0,
    "litres": 1000.0,
    "dl": 100.0,
    "deciliter": 100.0,
    "deciliters": 100.0,
    "cl": 10.0,
    "centiliter": 10.0,
    "centiliters": 10.0,
    # Kitchen measures
    "cup": CUP_ML,
    "cups": CUP_ML,
    "c": CUP_ML,
    "tbsp": TABLESPOON_ML,
    "tbs": TABLESPOON_ML,
    "tablespoon": TABLESPOON_ML,
    "tablespoons": TABLESPOON_ML,
    "tsp": TEASPOON_ML,
    "teaspoon": TEASPOON_ML,
    "teaspoons": TEASPOON_ML,
    # US customary
    "fl oz": 29.574,
    "fluid ounce": 29.574,
    "fluid ounces": 29.574,
    "pint": 473.176,
    "pints": 473.176,
    "pt": 473.176,
    "quart": 946.353,
    "quarts": 946.353,
    "qt": 946.353,
    "gallon": 3785.41,
    "gallons": 3785.41,
    "gal": 3785.41,
}

# Weight conversions (base unit: g)
WEIGHT_UNITS: dict[str, float] = {
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "kilogram": 1000.0,
    "kilograms": 1000.0,
    "mg": 0.001,
    "milligram": 0.001,
    "milligrams": 0.001,
    "oz": 28.3495,
    "ounce": 28.3495,
    "ounces": 28.3495,
    "lb": 453.592,
    "lbs": 453.592,
    "pound": 453.592,
    "pounds": 453.592,
}


@dataclass(frozen=True)
class IngredientRule:
    """Amount of one cup of a named ingredient in its base unit."""

    names: tuple[str, ...]
    per_cup: float
    unit: str  # "g" or "ml"

    @property
    def label(self) -> str:
        return "/".join(self.names)


# Named-ingredient overrides. These win over the generic volume rule.
INGREDIENT_RULES: tuple[IngredientRule, ...] = (
    IngredientRule(("flour",), 120.0, "g"),
    IngredientRule(("sugar",), 200.0, "g"),
    IngredientRule(("butter",), 227.0, "g"),
    IngredientRule(("milk", "water"), 250.0, "ml"),
    IngredientRule(("rice",), 185.0, "g"),
)

# Used only to guess a unit when nothing else matches
LIQUID_HINTS = (
    "milk",
    "water",
    "stock",
    "broth",
    "juice",
    "oil",
    "vinegar",
    "wine",
    "cream",
    "sauce",
    "syrup",
)

PANTRY_DESCRIPTORS = (
    "fresh",
    "dried",
    "frozen",
    "chopped",
    "diced",
    "minced",
    "sliced",
    "grated",
    "softened",
    "melted",
    "unsalted",
    "salted",
    "sifted",
    "packed",
    "cold",
    "warm",
)


# =============================================================================
# Parsing Functions
# =============================================================================


def parse_quantity_string(quantity_str: str) -> float:
    """
    Parse a quantity string into a float.

    Handles formats like:
    - "2"
    - "1.5" or "1,5"
    - "1/2"
    - "1 1/2" (one and a half)
    - "2-3" (range, returns average)
    """
    if not quantity_str:
        return 1.0

    quantity_str = quantity_str.strip().lower().replace(",", ".")

    if not quantity_str or quantity_str in ("to taste", "pinch", "dash", "some"):
        return 1.0

    range_match = re.match(r"(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)", quantity_str)
    if range_match:
        low = float(range_match.group(1))
        high = float(range_match.group(2))
        return (low + high) / 2

    mixed_match = re.match(r"(\d+)\s+(\d+)/(\d+)", quantity_str)
    if mixed_match:
        whole = int(mixed_match.group(1))
        num = int(mixed_match.group(2))
        denom = int(mixed_match.group(3))
        return whole + (num / denom)

    frac_match = re.match(r"(\d+)/(\d+)", quantity_str)
    if frac_match:
        num = int(frac_match.group(1))
        denom = int(frac_match.group(2))
        return num / denom

    num_match = re.match(r"(\d+(?:\.\d+)?)", quantity_str)
    if num_match:
        return float(num_match.group(1))

    return 1.0


def split_amount(amount: str) -> tuple[str, str]:
    """
    Split a combined amount string into quantity and unit.

    Examples:
        "120g" -> ("120", "g")
        "2 cups" -> ("2", "cups")
        "1/2 tsp" -> ("1/2", "tsp")
        "" -> ("", "")
    """
    if not amount:
        return "", ""

    amount = amount.strip()

    match = re.match(
        r"^(\d+(?:[.,]\d+)?(?:\s*/\s*\d+)?(?:\s+\d+/\d+)?(?:\s*-\s*\d+(?:[.,]\d+)?)?)\s*(.*)$",
        amount,
    )
    if match:
        return match.group(1).strip(), match.group(2).strip()

    # Just a unit or a free-form amount such as "to taste"
    return "", amount


def normalize_ingredient_name(name: str) -> str:
    """Lowercase an ingredient name and drop preparation descriptors."""
    if not name:
        return ""

    name = name.lower().strip()
    name = re.sub(r"\([^)]*\)", "", name)
    for desc in PANTRY_DESCRIPTORS:
        name = re.sub(rf"\b{desc}\b", "", name)

    return " ".join(name.split())


def find_ingredient_rule(ingredient_name: str) -> IngredientRule | None:
    """Return the named-ingredient override matching this ingredient, if any.

    Only the head noun counts: "brown sugar" matches sugar, "rice vinegar"
    does not match rice.
    """
    words = re.findall(r"[a-z]+", normalize_ingredient_name(ingredient_name))
    if not words:
        return None

    head = words[-1]
    for rule in INGREDIENT_RULES:
        if head in rule.names or head.rstrip("s") in rule.names:
            return rule
    return None


def guess_base_unit(ingredient_name: str) -> str:
    """Best-effort unit for an amount nothing else could classify."""
    normalized = normalize_ingredient_name(ingredient_name)
    if any(re.search(rf"\b{hint}\b", normalized) for hint in LIQUID_HINTS):
        return "ml"
    return "g"


def format_amount(value: float, unit: str) -> str:
    """Format a base-unit value as a compact amount string like ``120g``."""
    if value >= 10:
        text = str(int(round(value)))
    else:
        text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text}{unit}"


# =============================================================================
# Normalization
# =============================================================================


def normalize(
    quantity: str | float | None,
    unit: str | None,
    ingredient_name: str = "",
) -> str:
    """
    Normalize a quantity and unit into a gram or milliliter amount string.

    Named-ingredient rules take precedence over the generic volume rule, so
    ``1 cup flour`` becomes ``120g`` while ``1 cup stock`` becomes ``250ml``.
    Unknown units are never an error: the raw quantity is kept and paired
    with a guessed unit.

    Args:
        quantity: The quantity value (string or number).
        unit: The unit string, e.g. "cup", "tbsp", "g".
        ingredient_name: Display name of the ingredient.

    Returns:
        Amount string such as "120g" or "15ml".
    """
    if quantity is None:
        qty_value = 1.0
    elif isinstance(quantity, (int, float)):
        qty_value = float(quantity)
    else:
        qty_value = parse_quantity_string(str(quantity))

    unit_key = (unit or "").lower().strip().rstrip(".")

    if unit_key in VOLUME_UNITS:
        ml = qty_value * VOLUME_UNITS[unit_key]
        rule = find_ingredient_rule(ingredient_name)
        if rule is not None:
            return format_amount(ml / CUP_ML * rule.per_cup, rule.unit)
        return format_amount(ml, "ml")

    if unit_key in WEIGHT_UNITS:
        return format_amount(qty_value * WEIGHT_UNITS[unit_key], "g")

    guessed = guess_base_unit(ingredient_name)
    logger.debug(
        f"No conversion rule for unit={unit!r} ingredient={ingredient_name!r}, "
        f"keeping quantity with unit {guessed}"
    )
    return format_amount(qty_value, guessed)


def conversion_rules() -> list[str]:
    """Render the conversion table as instruction lines."""
    lines = [
        f"1 cup = {CUP_ML:g} ml (for liquids) or varies by ingredient for solids",
        f"1 tablespoon = {TABLESPOON_ML:g} ml (for liquids)",
        f"1 teaspoon = {TEASPOON_ML:g} ml (for liquids)",
        "For common ingredients:",
    ]
    for rule in INGREDIENT_RULES:
        lines.append(f"  - 1 cup {rule.label} = {rule.per_cup:g}{rule.unit}")
    return lines
