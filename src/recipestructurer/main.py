"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from recipestructurer.config import get_settings
from recipestructurer.connectors import ExtractionServiceClient, FoodbatchExporter, PageFetcher
from recipestructurer.logging_config import LoggingContext, configure_logging, get_logger
from recipestructurer.routers import recipes_router, sessions_router
from recipestructurer.service import RecipeService

settings = get_settings()

# Configure logging on module load
configure_logging(log_level=settings.log_level)
logger = get_logger(__name__)


def build_service() -> RecipeService:
    """Wire the service with connectors from settings."""
    return RecipeService(
        fetcher=PageFetcher(),
        extraction_client=ExtractionServiceClient(),
        exporter=FoodbatchExporter(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Recipe Structurer API")

    # A missing credential is a startup error, not a per-request one
    get_settings().require_openai_api_key()
    app.state.recipe_service = build_service()

    yield

    logger.info("Shutting down Recipe Structurer API")
    await app.state.recipe_service.close()


app = FastAPI(
    title="Recipe Structurer API",
    description="Turn recipe pages into step-indexed ingredients and instructions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line of a request with its id."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(recipes_router)
app.include_router(sessions_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "recipe-structurer-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Recipe Structurer API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
