"""API routes for editing a recipe within a user session."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from recipestructurer.editing import IngredientField, edit_ingredient, edit_step
from recipestructurer.errors import RecipeStructurerError
from recipestructurer.formatting import format_recipe_text
from recipestructurer.logging_config import LoggingContext, get_logger
from recipestructurer.models import Recipe
from recipestructurer.routers.dependencies import (
    get_recipe_service,
    get_session_store,
    to_http_exception,
)
from recipestructurer.routers.recipes import ParseRequest, TextResponse
from recipestructurer.service import RecipeService
from recipestructurer.sessions import SessionStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


class SessionResponse(BaseModel):
    """Session state as seen by the client."""

    session_id: str
    recipe: Recipe | None = None
    extracting: bool = False


class StepEdit(BaseModel):
    """New instruction text for a step."""

    text: str


class IngredientEdit(BaseModel):
    """New value for one field of an ingredient record."""

    field: IngredientField
    value: str


def _session_response(store: SessionStore, session_id: str) -> SessionResponse:
    session = store.get(session_id)
    return SessionResponse(
        session_id=session.id,
        recipe=session.recipe,
        extracting=session.in_flight is not None,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    """Start a new recipe session."""
    session = store.create()
    return SessionResponse(session_id=session.id)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    """Current recipe of a session."""
    try:
        return _session_response(store, session_id)
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e


@router.post("/{session_id}/parse", response_model=SessionResponse)
async def parse_into_session(
    session_id: str,
    body: ParseRequest,
    service: RecipeService = Depends(get_recipe_service),
) -> SessionResponse:
    """Parse a recipe page into the session, replacing its recipe."""
    try:
        await service.parse_for_session(session_id, body.url)
        return _session_response(service.sessions, session_id)
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e


@router.delete("/{session_id}/recipe", response_model=SessionResponse)
async def reset_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> SessionResponse:
    """Drop the session's recipe; a parse still running for it is discarded."""
    try:
        store.reset(session_id)
        return _session_response(store, session_id)
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> None:
    """End a session; a parse still running for it is discarded."""
    try:
        store.get(session_id)
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e
    store.remove(session_id)
    logger.info(f"Removed recipe session {session_id}")


@router.put("/{session_id}/steps/{step_index}", response_model=Recipe)
async def update_step(
    session_id: str,
    step_index: Annotated[int, Path(description="1-based step number")],
    body: StepEdit,
    store: SessionStore = Depends(get_session_store),
) -> Recipe:
    """Replace the text of one step."""
    with LoggingContext(session_id=session_id):
        try:
            recipe = edit_step(store.require_recipe(session_id), step_index, body.text)
        except RecipeStructurerError as e:
            raise to_http_exception(e) from e
        store.update_recipe(session_id, recipe)
        return recipe


@router.patch(
    "/{session_id}/steps/{step_index}/ingredients/{ingredient_index}",
    response_model=Recipe,
)
async def update_ingredient(
    session_id: str,
    step_index: Annotated[int, Path(description="1-based step number")],
    ingredient_index: Annotated[int, Path(description="0-based position within the step")],
    body: IngredientEdit,
    store: SessionStore = Depends(get_session_store),
) -> Recipe:
    """Change the item or amount of one ingredient in one step."""
    with LoggingContext(session_id=session_id):
        try:
            recipe = edit_ingredient(
                store.require_recipe(session_id),
                step_index,
                ingredient_index,
                body.field,
                body.value,
            )
        except RecipeStructurerError as e:
            raise to_http_exception(e) from e
        store.update_recipe(session_id, recipe)
        return recipe


@router.get("/{session_id}/text", response_model=TextResponse)
async def session_text(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> TextResponse:
    """Plain-text rendering of the session's recipe."""
    try:
        return TextResponse(text=format_recipe_text(store.require_recipe(session_id)))
    except RecipeStructurerError as e:
        raise to_http_exception(e) from e
