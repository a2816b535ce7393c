"""Plain-text rendering of a recipe for copying elsewhere."""

from recipestructurer.models import Recipe


def format_recipe_text(recipe: Recipe) -> str:
    """
    Render a recipe as plain text, one block per step.

    Each block reads ``Step N:``, then an optional ``Ingredients:`` list of
    ``item - amount`` lines, then the step instruction.
    """
    blocks = []
    for number, step in enumerate(recipe.steps, start=1):
        lines = [f"Step {number}:"]
        step_ingredients = recipe.ingredients_for_step(number)
        if step_ingredients:
            lines.append("Ingredients:")
            lines.extend(f"{ing.item} - {ing.amount}" for ing in step_ingredients)
        lines.append(step)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_export_description(recipe: Recipe) -> str:
    """Step list used as the description of an exported recipe."""
    return "\n\n".join(
        f"Step {number}: {step}" for number, step in enumerate(recipe.steps, start=1)
    )
