"""Shared router dependencies and error mapping."""

from fastapi import HTTPException, Request, status

from recipestructurer.errors import (
    USER_MESSAGE,
    ExportPartialFailure,
    ExtractionInProgress,
    OutOfRangeError,
    RecipeStructurerError,
    SessionNotFound,
    StaleExtraction,
)
from recipestructurer.logging_config import get_logger
from recipestructurer.service import RecipeService
from recipestructurer.sessions import SessionStore

logger = get_logger(__name__)

ERROR_STATUS: dict[type[RecipeStructurerError], int] = {
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    ExtractionInProgress: status.HTTP_409_CONFLICT,
    StaleExtraction: status.HTTP_409_CONFLICT,
    OutOfRangeError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def get_recipe_service(request: Request) -> RecipeService:
    """Service instance created by the application lifespan."""
    return request.app.state.recipe_service


def get_session_store(request: Request) -> SessionStore:
    return get_recipe_service(request).sessions


def to_http_exception(error: RecipeStructurerError) -> HTTPException:
    """Map a pipeline error to the single user-facing failure response."""
    status_code = ERROR_STATUS.get(type(error), status.HTTP_502_BAD_GATEWAY)
    detail: dict[str, object] = {"message": USER_MESSAGE, "kind": error.kind}
    if isinstance(error, ExportPartialFailure):
        detail["recipe_id"] = error.recipe_id
        detail["call"] = error.call

    if status_code >= 500:
        logger.error(f"Operation failed ({error.kind}): {error}")
    else:
        logger.info(f"Request rejected ({error.kind}): {error}")
    return HTTPException(status_code=status_code, detail=detail)
