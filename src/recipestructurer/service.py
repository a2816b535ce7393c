"""Orchestrates parsing and exporting recipes."""

from recipestructurer.connectors.extraction_service import ExtractionServiceClient
from recipestructurer.connectors.foodbatch import ExportResult, FoodbatchExporter
from recipestructurer.connectors.pages import PageFetcher
from recipestructurer.errors import StaleExtraction
from recipestructurer.extraction.pipeline import structure_response
from recipestructurer.extraction.request import build_request
from recipestructurer.logging_config import LoggingContext, get_logger
from recipestructurer.models import Recipe
from recipestructurer.sessions import SessionStore

logger = get_logger(__name__)


class RecipeService:
    """Entry points used by the API layer.

    Each call performs at most one extraction round trip and never retries;
    any error propagates to the caller as a ``RecipeStructurerError``.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extraction_client: ExtractionServiceClient,
        exporter: FoodbatchExporter,
        sessions: SessionStore | None = None,
    ):
        self.fetcher = fetcher
        self.extraction_client = extraction_client
        self.exporter = exporter
        self.sessions = sessions or SessionStore()

    async def structure_text(self, raw_text: str) -> Recipe:
        """Run already-fetched recipe text through extraction and validation."""
        request = build_request(raw_text)
        with LoggingContext(tier=request.tier.value):
            reply = await self.extraction_client.complete(request)
            return structure_response(reply).unwrap()

    async def parse_recipe(self, url: str) -> Recipe:
        """Fetch a recipe page and turn it into a Recipe."""
        raw_text = await self.fetcher.fetch_text(url)
        return await self.structure_text(raw_text)

    async def parse_for_session(self, session_id: str, url: str) -> Recipe:
        """
        Parse a recipe into a session.

        Raises:
            ExtractionInProgress: If the session is already waiting on one.
            StaleExtraction: If the session was reset while this one ran.
        """
        ticket = self.sessions.begin_extraction(session_id, url)
        with LoggingContext(session_id=session_id):
            try:
                recipe = await self.parse_recipe(url)
            except BaseException:
                # Cancellation included
                self.sessions.abandon_extraction(ticket)
                raise

            if not self.sessions.complete_extraction(ticket, recipe):
                raise StaleExtraction(f"Session {session_id} changed while parsing {url}")
        return recipe

    async def export_recipe(self, recipe: Recipe, name: str | None = None) -> ExportResult:
        """Send a recipe to Foodbatch."""
        return await self.exporter.export(recipe, name=name)

    async def close(self) -> None:
        await self.fetcher.close()
        await self.extraction_client.close()
        await self.exporter.close()
