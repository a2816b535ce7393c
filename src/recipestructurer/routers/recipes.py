"""API routes for parsing and exporting recipes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from recipestructurer.errors import RecipeStructurerError
from recipestructurer.formatting import format_recipe_text
from recipestructurer.logging_config import get_logger
from recipestructurer.models import Recipe
from recipestructurer.routers.dependencies import get_recipe_service, to_http_exception
from recipestructurer.service import RecipeService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


class ParseRequest(BaseModel):
    """Recipe page to parse."""

    url: str = Field(min_length=1, description="Recipe page URL")


class ExportRequest(BaseModel):
    """Recipe to send to Foodbatch."""

    recipe: Recipe
    name: str | None = Field(None, description="Recipe name in Foodbatch")


class ExportResponse(BaseModel):
    """Identifier of the exported recipe."""

    success: bool = True
    recipe_id: str = Field(serialization_alias="recipeId")


class TextResponse(BaseModel):
    """Plain-text rendering of a recipe."""

    text: str


@router.post("/parse", response_model=Recipe)
async def parse_recipe(
    body: ParseRequest,
    service: RecipeService = Depends(get_recipe_service),
) -> Recipe:
    """Fetch a recipe page and return its structured steps and ingredients."""
    logger.info(f"Parsing recipe from {body.url}")
    try:
        return await service.parse_recipe(body.url)
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e


@router.post("/export", response_model=ExportResponse)
async def export_recipe(
    body: ExportRequest,
    service: RecipeService = Depends(get_recipe_service),
) -> ExportResponse:
    """Send a recipe to Foodbatch and return the created recipe id."""
    logger.info(
        f"Exporting recipe with {len(body.recipe.steps)} steps "
        f"and {len(body.recipe.ingredients)} ingredients"
    )
    try:
        result = await service.export_recipe(body.recipe, name=body.name)
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e
    return ExportResponse(recipe_id=result.recipe_id)


@router.post("/text", response_model=TextResponse)
async def render_recipe_text(recipe: Recipe) -> TextResponse:
    """Render a recipe as copyable plain text."""
    return TextResponse(text=format_recipe_text(recipe))
