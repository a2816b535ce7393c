"""Turn raw recipe text into a validated Recipe via the extraction service."""

from recipestructurer.extraction.pipeline import StructuringOutcome, structure_response
from recipestructurer.extraction.request import (
    ExtractionRequest,
    Tier,
    build_request,
    count_words,
    model_for_tier,
    select_tier,
)
from recipestructurer.extraction.response import extract
from recipestructurer.extraction.validator import serialize, validate

__all__ = [
    "ExtractionRequest",
    "StructuringOutcome",
    "Tier",
    "build_request",
    "count_words",
    "extract",
    "model_for_tier",
    "select_tier",
    "serialize",
    "structure_response",
    "validate",
]
