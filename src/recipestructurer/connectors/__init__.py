"""Connectors for the page source, extraction service and recipe store."""

from recipestructurer.connectors.base import ConnectorResponse, HttpConnector
from recipestructurer.connectors.extraction_service import ExtractionServiceClient
from recipestructurer.connectors.foodbatch import ExportResult, FoodbatchExporter
from recipestructurer.connectors.pages import PageFetcher

__all__ = [
    "ConnectorResponse",
    "ExportResult",
    "ExtractionServiceClient",
    "FoodbatchExporter",
    "HttpConnector",
    "PageFetcher",
]
