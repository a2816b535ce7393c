"""Validate extracted payloads into canonical Recipe objects."""

import json
from typing import Any

from pydantic import ValidationError

from recipestructurer.errors import ParseError, SchemaError
from recipestructurer.logging_config import get_logger
from recipestructurer.models import Recipe

logger = get_logger(__name__)

REQUIRED_FIELDS = ("steps", "ingredients")


def _describe(errors: list[dict[str, Any]]) -> str:
    parts = []
    for err in errors[:5]:
        location = ".".join(str(loc) for loc in err.get("loc", ()))
        parts.append(f"{location or '<root>'}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def validate(candidate: str) -> Recipe:
    """
    Parse and validate a candidate payload into a Recipe.

    Structural problems are fatal. Ingredient step indices that point outside
    the step list are kept as they are; they simply never match a step.

    Raises:
        ParseError: If the candidate is not valid JSON.
        SchemaError: If the JSON does not have the recipe shape.
    """
    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError(f"Expected a JSON object, got {type(data).__name__}")

    missing = [name for name in REQUIRED_FIELDS if name not in data]
    if missing:
        raise SchemaError(f"Missing required field(s): {', '.join(missing)}")

    try:
        recipe = Recipe.model_validate_json(candidate, strict=True)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        raise SchemaError(f"Recipe has the wrong shape: {_describe(errors)}", errors) from e

    if not recipe.steps:
        logger.warning("Validated recipe has no steps")

    stray = recipe.unassigned_ingredients()
    out_of_range = [ing for ing in stray if ing.step_index != 0]
    if out_of_range:
        logger.warning(
            f"{len(out_of_range)} ingredient(s) reference missing steps: "
            f"{sorted({ing.step_index for ing in out_of_range})}"
        )

    return recipe


def serialize(recipe: Recipe) -> str:
    """Serialize a recipe to the JSON shape ``validate`` accepts."""
    return recipe.to_json()
