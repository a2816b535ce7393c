"""Canonical recipe models."""

from pydantic import BaseModel, ConfigDict, Field


class Ingredient(BaseModel):
    """One usage occurrence of an ingredient within a recipe step.

    The same item used in two steps is two records. ``step_index`` is 1-based;
    ``0`` means the record is not attached to any step.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item: str = Field(min_length=1)
    amount: str = ""
    step_index: int = Field(default=0, alias="stepIndex")


class Recipe(BaseModel):
    """Validated, step-indexed recipe used for display, editing and export."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    steps: list[str]
    ingredients: list[Ingredient]

    @property
    def is_valid(self) -> bool:
        """A recipe needs at least one step to be usable."""
        return bool(self.steps)

    def has_step(self, step_index: int) -> bool:
        """Check whether a 1-based step index points at an existing step."""
        return 1 <= step_index <= len(self.steps)

    def ingredients_for_step(self, step_index: int) -> list[Ingredient]:
        """Ingredients attached to the given 1-based step, in display order."""
        return [ing for ing in self.ingredients if ing.step_index == step_index]

    def unassigned_ingredients(self) -> list[Ingredient]:
        """Ingredients whose step index does not match any step."""
        return [ing for ing in self.ingredients if not self.has_step(ing.step_index)]

    def to_json(self) -> str:
        """Serialize using the wire field names."""
        return self.model_dump_json(by_alias=True)
