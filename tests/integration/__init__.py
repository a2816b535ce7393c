"""Integration tests for the recipe structurer.

These tests call the real recipe page and extraction service:
- Network access to the recipe page
- OPENAI_API_KEY set to a working key
- RECIPE_INTEGRATION_URL pointing at a recipe page

Run with: pytest tests/integration/ -v
Skip with: pytest -m "not integration"
"""
