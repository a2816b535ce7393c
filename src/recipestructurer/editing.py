"""Apply user edits to a Recipe.

Step indices are 1-based, matching ``Ingredient.step_index``. Ingredient
positions are 0-based and scoped to a single step: position 0 of step 2 is the
first record whose ``step_index`` is 2, wherever it sits in
``Recipe.ingredients``.
"""

from typing import Literal

from recipestructurer.errors import OutOfRangeError
from recipestructurer.logging_config import get_logger
from recipestructurer.models import Recipe

logger = get_logger(__name__)

IngredientField = Literal["item", "amount"]
EDITABLE_FIELDS: frozenset[str] = frozenset({"item", "amount"})


def build_step_index(recipe: Recipe) -> dict[int, list[int]]:
    """Map each step index to the global positions of its ingredient records."""
    index: dict[int, list[int]] = {}
    for position, ingredient in enumerate(recipe.ingredients):
        index.setdefault(ingredient.step_index, []).append(position)
    return index


def resolve_ingredient(recipe: Recipe, step_index: int, ingredient_index: int) -> int | None:
    """Translate a step-scoped ingredient position into a global position."""
    positions = build_step_index(recipe).get(step_index, [])
    if 0 <= ingredient_index < len(positions):
        return positions[ingredient_index]
    return None


def edit_step(recipe: Recipe, step_index: int, new_text: str) -> Recipe:
    """
    Replace the instruction text of one step.

    Raises:
        OutOfRangeError: If ``step_index`` does not point at a step.
    """
    if not recipe.has_step(step_index):
        raise OutOfRangeError(
            f"Step {step_index} does not exist (recipe has {len(recipe.steps)} steps)"
        )

    steps = list(recipe.steps)
    steps[step_index - 1] = new_text
    return recipe.model_copy(update={"steps": steps})


def edit_ingredient(
    recipe: Recipe,
    step_index: int,
    ingredient_index: int,
    field: IngredientField,
    value: str,
) -> Recipe:
    """
    Update ``item`` or ``amount`` on one ingredient record of one step.

    A position that does not exist returns the recipe unchanged; edits are
    driven by UI state that can briefly lag behind the recipe.
    """
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown ingredient field: {field!r}")

    position = resolve_ingredient(recipe, step_index, ingredient_index)
    if position is None:
        logger.debug(
            f"No ingredient {ingredient_index} in step {step_index}, ignoring {field} edit"
        )
        return recipe

    ingredients = list(recipe.ingredients)
    ingredients[position] = ingredients[position].model_copy(update={field: value})
    return recipe.model_copy(update={"ingredients": ingredients})
