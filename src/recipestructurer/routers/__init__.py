"""API routers for the recipe structurer."""

from recipestructurer.routers.recipes import router as recipes_router
from recipestructurer.routers.sessions import router as sessions_router

__all__ = [
    "recipes_router",
    "sessions_router",
]
