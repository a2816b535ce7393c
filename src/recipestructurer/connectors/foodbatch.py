"""Export recipes to the Foodbatch recipe store."""

from dataclasses import dataclass, field
from typing import Any

import httpx
from rapidfuzz import fuzz, process

from recipestructurer.config import get_settings
from recipestructurer.connectors.base import ConnectorResponse, HttpConnector, error_detail
from recipestructurer.errors import ExportPartialFailure, UpstreamServiceError
from recipestructurer.formatting import format_export_description
from recipestructurer.logging_config import get_logger
from recipestructurer.models import Ingredient, Recipe
from recipestructurer.normalize.units import normalize_ingredient_name, split_amount

logger = get_logger(__name__)


@dataclass
class ExportResult:
    """Identifiers created by one export run."""

    recipe_id: str
    step_ids: dict[int, str] = field(default_factory=dict)
    ingredient_ids: dict[str, str] = field(default_factory=dict)
    amount_ids: list[str] = field(default_factory=list)
    calls: int = 0


class FoodbatchExporter(HttpConnector):
    """Runs the Foodbatch call sequence for one recipe.

    The sequence is: create the recipe, then a step and an instruction
    sub-step per recipe step, then for each ingredient record a catalog
    entry (found or created) and an amount linking ingredient, step and
    recipe. Nothing is rolled back when a later call fails.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        match_threshold: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        super().__init__(
            base_url=base_url or settings.foodbatch_base_url,
            timeout=timeout if timeout is not None else settings.foodbatch_timeout,
            transport=transport,
        )
        self.api_token = api_token if api_token is not None else settings.foodbatch_api_token
        self.match_threshold = (
            match_threshold if match_threshold is not None else settings.catalog_match_threshold
        )

    def default_headers(self) -> dict[str, str]:
        headers = {
            **super().default_headers(),
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _request(
        self,
        call: str,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ConnectorResponse:
        """Make one API call, raising ``UpstreamServiceError`` on any failure."""
        client = await self._get_client()
        try:
            response = await client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Foodbatch call {call} failed: {e}")
            raise UpstreamServiceError(f"Foodbatch call {call} failed: {e}", call=call) from e

        result = ConnectorResponse.from_httpx(response)
        if not result.is_success:
            detail = error_detail(response)
            logger.error(f"Foodbatch call {call} returned {result.status_code}: {detail}")
            raise UpstreamServiceError(
                f"Foodbatch call {call} failed with status {result.status_code}",
                status_code=result.status_code,
                response=detail,
                call=call,
            )
        return result

    @staticmethod
    def _id_of(result: ConnectorResponse, call: str) -> str:
        data = result.data
        if isinstance(data, dict) and data.get("id") is not None:
            return str(data["id"])
        raise UpstreamServiceError(
            f"Foodbatch call {call} returned no id",
            status_code=result.status_code,
            response=data,
            call=call,
        )

    async def create_recipe(self, name: str, description: str) -> str:
        result = await self._request(
            "create_recipe", "POST", "/recipes", json={"name": name, "description": description}
        )
        return self._id_of(result, "create_recipe")

    async def create_step(self, recipe_id: str, order: int) -> str:
        result = await self._request(
            "create_step", "POST", "/steps", json={"recipe_id": recipe_id, "order": order}
        )
        return self._id_of(result, "create_step")

    async def create_sub_step(self, step_id: str, instruction: str) -> str:
        result = await self._request(
            "create_sub_step",
            "POST",
            "/sub_steps",
            json={"step_id": step_id, "order": 1, "instruction": instruction},
        )
        return self._id_of(result, "create_sub_step")

    async def find_ingredient(self, name: str) -> str | None:
        """Search the catalog and return the best fuzzy match above threshold."""
        result = await self._request(
            "find_ingredient", "GET", "/ingredients", params={"search": name}
        )
        data = result.data
        if isinstance(data, dict):
            data = data.get("results") or data.get("ingredients") or []
        candidates = {
            str(entry["id"]): normalize_ingredient_name(str(entry.get("name", "")))
            for entry in data or []
            if isinstance(entry, dict) and entry.get("id") is not None
        }
        if not candidates:
            return None

        best = process.extractOne(
            normalize_ingredient_name(name),
            candidates,
            scorer=fuzz.token_sort_ratio,
            score_cutoff=self.match_threshold,
        )
        if best is None:
            return None

        _, score, ingredient_id = best
        logger.debug(f"Matched ingredient {name!r} to catalog entry {ingredient_id} ({score:.0f})")
        return ingredient_id

    async def create_ingredient(self, name: str) -> str:
        result = await self._request("create_ingredient", "POST", "/ingredients", json={"name": name})
        return self._id_of(result, "create_ingredient")

    async def create_amount(
        self,
        recipe_id: str,
        step_id: str | None,
        ingredient_id: str,
        ingredient: Ingredient,
    ) -> str:
        quantity, unit = split_amount(ingredient.amount)
        result = await self._request(
            "create_amount",
            "POST",
            "/amounts",
            json={
                "recipe_id": recipe_id,
                "step_id": step_id,
                "ingredient_id": ingredient_id,
                "quantity": quantity,
                "unit": unit,
                "raw": ingredient.amount,
            },
        )
        return self._id_of(result, "create_amount")

    async def export(self, recipe: Recipe, name: str | None = None) -> ExportResult:
        """
        Push a recipe to Foodbatch.

        Raises:
            UpstreamServiceError: If the recipe itself could not be created.
            ExportPartialFailure: If a later call failed after the recipe existed.
        """
        name = name or get_settings().export_recipe_name
        recipe_id = await self.create_recipe(name, format_export_description(recipe))
        result = ExportResult(recipe_id=recipe_id, calls=1)
        logger.info(f"Created Foodbatch recipe {recipe_id}")

        try:
            await self._export_steps(recipe, result)
            await self._export_ingredients(recipe, result)
        except UpstreamServiceError as e:
            raise ExportPartialFailure(
                call=e.call or "unknown",
                recipe_id=recipe_id,
                completed_calls=result.calls,
            ) from e

        logger.info(
            f"Exported recipe {recipe_id}: {len(result.step_ids)} steps, "
            f"{len(result.amount_ids)} amounts in {result.calls} calls"
        )
        return result

    async def _export_steps(self, recipe: Recipe, result: ExportResult) -> None:
        for order, instruction in enumerate(recipe.steps, start=1):
            step_id = await self.create_step(result.recipe_id, order)
            result.calls += 1
            await self.create_sub_step(step_id, instruction)
            result.calls += 1
            result.step_ids[order] = step_id

    async def _export_ingredients(self, recipe: Recipe, result: ExportResult) -> None:
        for ingredient in recipe.ingredients:
            key = normalize_ingredient_name(ingredient.item) or ingredient.item
            ingredient_id = result.ingredient_ids.get(key)
            if ingredient_id is None:
                ingredient_id = await self.find_ingredient(ingredient.item)
                result.calls += 1
                if ingredient_id is None:
                    ingredient_id = await self.create_ingredient(ingredient.item)
                    result.calls += 1
                result.ingredient_ids[key] = ingredient_id

            # Records pointing at missing steps are exported without a step
            step_id = result.step_ids.get(ingredient.step_index)
            amount_id = await self.create_amount(
                result.recipe_id, step_id, ingredient_id, ingredient
            )
            result.calls += 1
            result.amount_ids.append(amount_id)
