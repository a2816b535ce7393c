"""Exception taxonomy for the recipe structuring pipeline."""

from typing import Any

USER_MESSAGE = "Operation failed, please try again."


class RecipeStructurerError(Exception):
    """Base exception for all recipe structuring errors."""

    kind = "error"


class ConfigurationError(RecipeStructurerError):
    """Raised when required configuration is missing at startup."""

    kind = "configuration"


class FetchFailure(RecipeStructurerError):
    """Raised when the raw recipe page content cannot be obtained."""

    kind = "fetch_failure"

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExtractionFailure(RecipeStructurerError):
    """Raised when no candidate payload can be isolated from a response."""

    kind = "extraction_failure"


class ParseError(RecipeStructurerError):
    """Raised when the isolated payload is not valid JSON."""

    kind = "parse_error"


class SchemaError(RecipeStructurerError):
    """Raised when the payload is valid JSON but has the wrong shape."""

    kind = "schema_error"

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class UpstreamServiceError(RecipeStructurerError):
    """Raised when the extraction or export service returns a non-success status."""

    kind = "upstream_service_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
        call: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.call = call


class ExportPartialFailure(RecipeStructurerError):
    """Raised when an export call fails after earlier calls already succeeded."""

    kind = "export_partial_failure"

    def __init__(self, call: str, recipe_id: str, completed_calls: int):
        super().__init__(
            f"Export call '{call}' failed after {completed_calls} successful calls "
            f"(recipe {recipe_id} was created and is incomplete)"
        )
        self.call = call
        self.recipe_id = recipe_id
        self.completed_calls = completed_calls


class OutOfRangeError(RecipeStructurerError, IndexError):
    """Raised when a step edit targets a step that does not exist."""

    kind = "out_of_range"


class SessionNotFound(RecipeStructurerError):
    """Raised when a recipe session id is unknown."""

    kind = "session_not_found"


class ExtractionInProgress(RecipeStructurerError):
    """Raised when a session already has an outstanding extraction."""

    kind = "extraction_in_progress"


class StaleExtraction(RecipeStructurerError):
    """Raised when an extraction result arrives for a session that moved on."""

    kind = "stale_extraction"
