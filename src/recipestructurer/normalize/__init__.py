"""Normalize recipe amounts to grams and milliliters."""

from recipestructurer.normalize.units import (
    INGREDIENT_RULES,
    IngredientRule,
    conversion_rules,
    find_ingredient_rule,
    format_amount,
    normalize,
    normalize_ingredient_name,
    parse_quantity_string,
    split_amount,
)

__all__ = [
    "INGREDIENT_RULES",
    "IngredientRule",
    "conversion_rules",
    "find_ingredient_rule",
    "format_amount",
    "normalize",
    "normalize_ingredient_name",
    "parse_quantity_string",
    "split_amount",
]
