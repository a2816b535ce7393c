"""Refine a raw model reply into a Recipe, returning result-or-error values."""

from dataclasses import dataclass

from recipestructurer.errors import ExtractionFailure, RecipeStructurerError
from recipestructurer.extraction.response import extract
from recipestructurer.extraction.validator import validate
from recipestructurer.logging_config import get_logger
from recipestructurer.models import Recipe

logger = get_logger(__name__)


@dataclass(frozen=True)
class StructuringOutcome:
    """Result of structuring one response: a recipe or the error that stopped it."""

    recipe: Recipe | None = None
    error: RecipeStructurerError | None = None
    payload: str | None = None

    @property
    def ok(self) -> bool:
        return self.recipe is not None

    def unwrap(self) -> Recipe:
        """Return the recipe or raise the recorded error."""
        if self.recipe is None:
            raise self.error or ExtractionFailure("No recipe was structured")
        return self.recipe


def structure_response(raw_response: str | None) -> StructuringOutcome:
    """Run extraction and validation over a raw service reply."""
    try:
        payload = extract(raw_response)
    except RecipeStructurerError as e:
        logger.warning(f"Could not isolate payload: {e}")
        return StructuringOutcome(error=e)

    try:
        recipe = validate(payload)
    except RecipeStructurerError as e:
        logger.warning(f"Payload rejected ({e.kind}): {e}")
        logger.debug(f"Rejected payload: {payload[:500]}")
        return StructuringOutcome(error=e, payload=payload)

    logger.info(
        f"Structured recipe with {len(recipe.steps)} steps "
        f"and {len(recipe.ingredients)} ingredients"
    )
    return StructuringOutcome(recipe=recipe, payload=payload)
