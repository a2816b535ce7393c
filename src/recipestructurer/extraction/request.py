"""Build extraction requests for the text-understanding service."""

import json
from dataclasses import dataclass
from enum import Enum

from recipestructurer.config import get_settings
from recipestructurer.logging_config import get_logger
from recipestructurer.normalize.units import conversion_rules

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant that parses recipes into structured data. "
    "Always convert measurements to grams (g) or milliliters (ml) and associate "
    "ingredients with their specific steps."
)

OUTPUT_SCHEMA = {
    "steps": ["step 1 instruction", "step 2 instruction"],
    "ingredients": [
        {
            "item": "ingredient name",
            "amount": "amount in g or ml",
            "stepIndex": "number (1-based index of the step where this ingredient is used)",
        }
    ],
}

STEP_ASSOCIATION_RULES = (
    "Each ingredient should be associated with the specific step where it is first "
    "actively used",
    "If an ingredient is used across multiple steps, create separate entries for each "
    "step instead of one entry with a combined amount",
    "Only include ingredients in steps where they are actively used/added",
)


class Tier(str, Enum):
    """Processing tier chosen by input size."""

    STANDARD = "standard"
    HIGH_CAPACITY = "high-capacity"


@dataclass(frozen=True)
class ExtractionRequest:
    """Everything the extraction service needs for one call."""

    tier: Tier
    system_instruction: str
    user_instruction: str
    word_count: int


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def select_tier(word_count: int, threshold: int | None = None) -> Tier:
    """Pick the high-capacity tier only for very large inputs."""
    if threshold is None:
        threshold = get_settings().high_capacity_word_threshold
    return Tier.HIGH_CAPACITY if word_count > threshold else Tier.STANDARD


def model_for_tier(tier: Tier) -> str:
    """Resolve the configured model name for a tier."""
    settings = get_settings()
    if tier is Tier.HIGH_CAPACITY:
        return settings.high_capacity_model
    return settings.standard_model


def build_instructions(raw_text: str) -> str:
    """Render the user instruction embedding schema, unit rules and step rules."""
    schema = json.dumps(OUTPUT_SCHEMA, indent=2)

    conversion = "\n".join(f"   - {line}" for line in conversion_rules())
    numbered = [
        "ALL measurements MUST be converted to either grams (g) or milliliters (ml)",
        f"Use these conversion rules:\n{conversion}",
        *STEP_ASSOCIATION_RULES,
    ]
    rules = "\n".join(f"{i}. {rule}" for i, rule in enumerate(numbered, start=1))

    return (
        "Parse this recipe into a structured format. For each step, identify ONLY the "
        "ingredients and their amounts that are specifically used in that step.\n"
        "Return the result as a JSON object with this exact structure:\n"
        f"{schema}\n\n"
        "Important rules for measurement conversion:\n"
        f"{rules}\n\n"
        "Recipe content:\n"
        f"{raw_text}"
    )


def build_request(raw_text: str, threshold: int | None = None) -> ExtractionRequest:
    """
    Build the extraction request for a piece of raw recipe text.

    Args:
        raw_text: Page text as fetched.
        threshold: Word count above which the high-capacity tier is used.
            Defaults to the configured threshold.

    Returns:
        ExtractionRequest with tier and instructions.
    """
    word_count = count_words(raw_text)
    tier = select_tier(word_count, threshold)
    logger.info(f"Recipe word count: {word_count}, selected tier: {tier.value}")

    return ExtractionRequest(
        tier=tier,
        system_instruction=SYSTEM_INSTRUCTION,
        user_instruction=build_instructions(raw_text),
        word_count=word_count,
    )
