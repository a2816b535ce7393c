"""Pytest configuration and shared fixtures."""

import json
import os
from unittest.mock import AsyncMock, MagicMock

# The application refuses to start without an extraction credential
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest

from recipestructurer.config import get_settings
from recipestructurer.connectors import ExportResult
from recipestructurer.models import Ingredient, Recipe
from recipestructurer.service import RecipeService
from recipestructurer.sessions import SessionStore

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require external services)"
    )
    config.addinivalue_line("markers", "slow: marks tests as slow running")


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; make each test read the environment again."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Recipe Fixtures
# =============================================================================


@pytest.fixture
def pancake_recipe() -> Recipe:
    """Two-step recipe where milk is used in both steps."""
    return Recipe(
        steps=[
            "Whisk the flour, sugar and half of the milk until smooth.",
            "Stir in the eggs and the rest of the milk, then fry in butter.",
        ],
        ingredients=[
            Ingredient(item="Flour", amount="120g", step_index=1),
            Ingredient(item="Milk", amount="125ml", step_index=1),
            Ingredient(item="Eggs", amount="2", step_index=2),
            Ingredient(item="Sugar", amount="25g", step_index=1),
            Ingredient(item="Milk", amount="125ml", step_index=2),
            Ingredient(item="Butter", amount="15g", step_index=2),
        ],
    )


@pytest.fixture
def pancake_payload(pancake_recipe) -> dict:
    """The pancake recipe in wire format."""
    return json.loads(pancake_recipe.to_json())


@pytest.fixture
def fenced_response() -> str:
    """Typical chat reply wrapping the payload in a ```json fence."""
    return (
        "Here you go:\n```json\n"
        '{"steps":["Mix"],"ingredients":[{"item":"Flour","amount":"120g","stepIndex":1}]}'
        "\n```"
    )


@pytest.fixture
def completion_body():
    """Build an OpenAI chat completions response body around some content."""

    def _build(content: str) -> dict:
        return {
            "id": "chatcmpl-123",
            "object": "chat.completion",
            "model": "gpt-4o-mini",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
        }

    return _build


@pytest.fixture
def service(recipe_page_text, fenced_response) -> RecipeService:
    """Service with mocked connectors returning a small recipe."""
    fetcher = MagicMock()
    fetcher.fetch_text = AsyncMock(return_value=recipe_page_text)
    fetcher.close = AsyncMock()

    extraction_client = MagicMock()
    extraction_client.complete = AsyncMock(return_value=fenced_response)
    extraction_client.close = AsyncMock()

    exporter = MagicMock()
    exporter.export = AsyncMock(return_value=ExportResult(recipe_id="rec-9"))
    exporter.close = AsyncMock()

    return RecipeService(fetcher, extraction_client, exporter, sessions=SessionStore())


@pytest.fixture
def recipe_page_text() -> str:
    """Raw text of a small recipe page."""
    return (
        "Simple Pancakes\n"
        "Ingredients: 1 cup flour, 2 tbsp sugar, 1 cup milk, 2 eggs, 1 tbsp butter\n"
        "1. Whisk the flour, sugar and half of the milk.\n"
        "2. Add the eggs and remaining milk, fry in butter."
    )
