"""Tests for the page, extraction service and Foodbatch connectors."""

import json

import httpx
import pytest

from recipestructurer.connectors import ExtractionServiceClient, FoodbatchExporter, PageFetcher
from recipestructurer.connectors.base import ConnectorResponse
from recipestructurer.errors import (
    ConfigurationError,
    ExportPartialFailure,
    FetchFailure,
    UpstreamServiceError,
)
from recipestructurer.extraction import Tier, build_request
from recipestructurer.models import Ingredient, Recipe

# =============================================================================
# Page Fetcher
# =============================================================================


class TestPageFetcher:
    """Tests for PageFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_text(self, recipe_page_text):
        """Test the body is returned as-is."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url == "https://example.com/pancakes"
            return httpx.Response(200, text=recipe_page_text)

        async with PageFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            assert await fetcher.fetch_text("https://example.com/pancakes") == recipe_page_text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "example.com/recipe", "ftp://example.com/recipe"])
    async def test_invalid_url(self, url):
        """Test non-http URLs are rejected before any request."""
        fetcher = PageFetcher(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with pytest.raises(FetchFailure):
            await fetcher.fetch_text(url)

    @pytest.mark.asyncio
    async def test_error_status(self):
        """Test error statuses become FetchFailure."""
        fetcher = PageFetcher(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        with pytest.raises(FetchFailure) as exc_info:
            await fetcher.fetch_text("https://example.com/missing")
        assert exc_info.value.status_code == 404
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_empty_body(self):
        """Test an empty page is a fetch failure."""
        fetcher = PageFetcher(transport=httpx.MockTransport(lambda r: httpx.Response(200, text=" ")))
        with pytest.raises(FetchFailure):
            await fetcher.fetch_text("https://example.com/blank")
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_retries_network_errors(self):
        """Test transient network errors are retried for the GET."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 2:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text="Pancakes")

        fetcher = PageFetcher(max_retries=3, transport=httpx.MockTransport(handler))
        fetcher.BACKOFF_BASE = 0
        assert await fetcher.fetch_text("https://example.com/pancakes") == "Pancakes"
        assert len(attempts) == 2
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self):
        """Test persistent network errors end in FetchFailure."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = PageFetcher(max_retries=1, transport=httpx.MockTransport(handler))
        with pytest.raises(FetchFailure):
            await fetcher.fetch_text("https://example.com/pancakes")
        await fetcher.close()

    def test_explicit_zero_settings_are_kept(self):
        """Test zero values passed in are not replaced by configured defaults."""
        fetcher = PageFetcher(timeout=0, max_retries=0)
        assert fetcher.timeout == 0
        assert fetcher.max_retries == 0


# =============================================================================
# Extraction Service Client
# =============================================================================


class TestExtractionServiceClient:
    """Tests for ExtractionServiceClient."""

    @pytest.mark.asyncio
    async def test_complete(self, recipe_page_text, completion_body, fenced_response):
        """Test a successful call returns the message content."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion_body(fenced_response))

        client = ExtractionServiceClient(
            api_key="sk-test", transport=httpx.MockTransport(handler)
        )
        content = await client.complete(build_request(recipe_page_text))
        await client.close()

        assert content == fenced_response
        assert seen["path"] == "/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-4o-mini"
        assert seen["body"]["temperature"] == 0.2
        assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]

    def test_payload_uses_tier_model(self):
        """Test the high-capacity tier maps to the larger model."""
        client = ExtractionServiceClient(api_key="sk-test")
        request = build_request("word " * 150_001)

        assert request.tier is Tier.HIGH_CAPACITY
        assert client.build_payload(request)["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_error_status(self, recipe_page_text):
        """Test an error status carries the service message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        client = ExtractionServiceClient(api_key="sk-bad", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamServiceError, match="Invalid API key") as exc_info:
            await client.complete(build_request(recipe_page_text))
        assert exc_info.value.status_code == 401
        await client.close()

    @pytest.mark.asyncio
    async def test_error_status_with_plain_error(self, recipe_page_text):
        """Test proxies that send the error as a bare string still map to UpstreamServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "Unauthorized"})

        client = ExtractionServiceClient(api_key="sk-bad", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamServiceError, match="Unauthorized") as exc_info:
            await client.complete(build_request(recipe_page_text))
        assert exc_info.value.status_code == 401
        assert exc_info.value.call == "chat.completions"
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_content(self, recipe_page_text):
        """Test a reply without choices is rejected."""
        client = ExtractionServiceClient(
            api_key="sk-test",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []})),
        )
        with pytest.raises(UpstreamServiceError, match="Invalid response"):
            await client.complete(build_request(recipe_page_text))
        await client.close()

    @pytest.mark.asyncio
    async def test_network_error_is_not_retried(self, recipe_page_text):
        """Test a transport failure surfaces after a single attempt."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        client = ExtractionServiceClient(api_key="sk-test", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamServiceError):
            await client.complete(build_request(recipe_page_text))
        assert len(attempts) == 1
        await client.close()

    def test_missing_api_key(self, monkeypatch):
        """Test the client cannot be built without a credential."""
        monkeypatch.setenv("OPENAI_API_KEY", "")
        with pytest.raises(ConfigurationError):
            ExtractionServiceClient()


# =============================================================================
# Foodbatch Exporter
# =============================================================================


class FakeFoodbatch:
    """In-memory stand-in for the Foodbatch REST API."""

    def __init__(self, catalog=None, fail_on=None):
        self.catalog = list(catalog or [])
        self.fail_on = fail_on
        self.calls: list[tuple[str, str, object]] = []
        self._next_id = 100

    def _new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))

        if self.fail_on == (request.method, path):
            return httpx.Response(500, json={"error": "boom"})

        if request.method == "GET" and path == "/ingredients":
            return httpx.Response(200, json=self.catalog)
        if request.method == "POST" and path == "/ingredients":
            entry = {"id": self._new_id(), "name": body["name"]}
            self.catalog.append(entry)
            return httpx.Response(201, json=entry)
        if request.method == "POST" and path == "/recipes":
            return httpx.Response(201, json={"id": "rec-1", **body})
        return httpx.Response(201, json={"id": self._new_id(), **body})

    def paths(self) -> list[tuple[str, str]]:
        return [(method, path) for method, path, _ in self.calls]

    def bodies(self, method: str, path: str) -> list:
        return [body for m, p, body in self.calls if (m, p) == (method, path)]


@pytest.fixture
def two_step_recipe() -> Recipe:
    return Recipe(
        steps=["Mix", "Bake"],
        ingredients=[
            Ingredient(item="Flour", amount="120g", step_index=1),
            Ingredient(item="Milk", amount="250ml", step_index=1),
            Ingredient(item="Milk", amount="50ml", step_index=2),
        ],
    )


class TestFoodbatchExporter:
    """Tests for FoodbatchExporter."""

    def _exporter(self, fake: FakeFoodbatch) -> FoodbatchExporter:
        return FoodbatchExporter(
            base_url="https://api.foodbatch.test",
            transport=httpx.MockTransport(fake.handler),
        )

    @pytest.mark.asyncio
    async def test_call_sequence(self, two_step_recipe):
        """Test recipe, steps, sub-steps, catalog and amounts are created in order."""
        fake = FakeFoodbatch()
        async with self._exporter(fake) as exporter:
            result = await exporter.export(two_step_recipe)

        assert result.recipe_id == "rec-1"
        assert fake.paths() == [
            ("POST", "/recipes"),
            ("POST", "/steps"),
            ("POST", "/sub_steps"),
            ("POST", "/steps"),
            ("POST", "/sub_steps"),
            ("GET", "/ingredients"),
            ("POST", "/ingredients"),
            ("POST", "/amounts"),
            ("GET", "/ingredients"),
            ("POST", "/ingredients"),
            ("POST", "/amounts"),
            ("POST", "/amounts"),
        ]
        assert result.calls == len(fake.calls)

        recipe_body = fake.bodies("POST", "/recipes")[0]
        assert recipe_body == {"name": "Imported Recipe", "description": "Step 1: Mix\n\nStep 2: Bake"}

        sub_steps = fake.bodies("POST", "/sub_steps")
        assert [s["instruction"] for s in sub_steps] == ["Mix", "Bake"]

        amounts = fake.bodies("POST", "/amounts")
        assert [a["step_id"] for a in amounts] == [
            result.step_ids[1],
            result.step_ids[1],
            result.step_ids[2],
        ]
        assert amounts[0]["quantity"] == "120"
        assert amounts[0]["unit"] == "g"
        assert all(a["recipe_id"] == "rec-1" for a in amounts)

    @pytest.mark.asyncio
    async def test_existing_catalog_entry_is_reused(self):
        """Test a fuzzy catalog match avoids creating a duplicate ingredient."""
        fake = FakeFoodbatch(catalog=[{"id": "ing-7", "name": "Plain Flour"}])
        recipe = Recipe(
            steps=["Mix"], ingredients=[Ingredient(item="flour plain", amount="120g", step_index=1)]
        )

        async with self._exporter(fake) as exporter:
            result = await exporter.export(recipe, name="Bread")

        assert ("POST", "/ingredients") not in fake.paths()
        assert fake.bodies("POST", "/amounts")[0]["ingredient_id"] == "ing-7"
        assert fake.bodies("POST", "/recipes")[0]["name"] == "Bread"
        assert result.ingredient_ids == {"flour plain": "ing-7"}

    @pytest.mark.asyncio
    async def test_unassigned_ingredient_has_no_step(self):
        """Test ingredients pointing at missing steps are exported without a step."""
        fake = FakeFoodbatch()
        recipe = Recipe(
            steps=["Mix"], ingredients=[Ingredient(item="Salt", amount="1g", step_index=4)]
        )

        async with self._exporter(fake) as exporter:
            await exporter.export(recipe)

        assert fake.bodies("POST", "/amounts")[0]["step_id"] is None

    @pytest.mark.asyncio
    async def test_recipe_creation_failure(self, two_step_recipe):
        """Test a failing first call is a plain upstream error."""
        fake = FakeFoodbatch(fail_on=("POST", "/recipes"))

        async with self._exporter(fake) as exporter:
            with pytest.raises(UpstreamServiceError) as exc_info:
                await exporter.export(two_step_recipe)

        assert not isinstance(exc_info.value, ExportPartialFailure)
        assert exc_info.value.call == "create_recipe"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_partial_failure(self, two_step_recipe):
        """Test a later failure names the call and the incomplete recipe."""
        fake = FakeFoodbatch(fail_on=("POST", "/amounts"))

        async with self._exporter(fake) as exporter:
            with pytest.raises(ExportPartialFailure) as exc_info:
                await exporter.export(two_step_recipe)

        error = exc_info.value
        assert error.call == "create_amount"
        assert error.recipe_id == "rec-1"
        assert error.completed_calls == 7
        assert isinstance(error.__cause__, UpstreamServiceError)


class TestConnectorResponse:
    """Tests for ConnectorResponse."""

    def test_from_httpx_non_json(self):
        """Test non-JSON bodies decode to an empty dict."""
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(200, text="<html></html>", request=request)

        result = ConnectorResponse.from_httpx(response)

        assert result.data == {}
        assert result.is_success
