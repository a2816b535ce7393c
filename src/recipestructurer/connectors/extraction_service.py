"""Client for the OpenAI-compatible chat completions endpoint."""

from typing import Any

import httpx

from recipestructurer.config import get_settings
from recipestructurer.connectors.base import ConnectorResponse, HttpConnector, error_detail
from recipestructurer.errors import UpstreamServiceError
from recipestructurer.extraction.request import ExtractionRequest, model_for_tier
from recipestructurer.logging_config import get_logger

logger = get_logger(__name__)


class ExtractionServiceClient(HttpConnector):
    """Sends extraction requests and returns the raw reply text.

    Calls are made once; a failed extraction is retried only when the user
    submits again.
    """

    DEFAULT_TIMEOUT = 120.0

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        temperature: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        super().__init__(
            base_url=base_url or settings.openai_base_url,
            timeout=timeout if timeout is not None else settings.extraction_timeout,
            transport=transport,
        )
        self.api_key = api_key or settings.require_openai_api_key()
        self.temperature = (
            temperature if temperature is not None else settings.extraction_temperature
        )

    def default_headers(self) -> dict[str, str]:
        return {
            **super().default_headers(),
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, request: ExtractionRequest) -> dict[str, Any]:
        """Chat completions body for an extraction request."""
        return {
            "model": model_for_tier(request.tier),
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_instruction},
            ],
            "temperature": self.temperature,
        }

    async def complete(self, request: ExtractionRequest) -> str:
        """
        Run one extraction call.

        Returns:
            The assistant message content, unparsed.

        Raises:
            UpstreamServiceError: On transport failure, error status or a reply
                without message content.
        """
        payload = self.build_payload(request)
        client = await self._get_client()

        logger.info(f"Sending extraction request (model={payload['model']})")
        try:
            response = await client.post("/chat/completions", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Extraction service unreachable: {e}")
            raise UpstreamServiceError(
                f"Extraction service unreachable: {e}", call="chat.completions"
            ) from e

        result = ConnectorResponse.from_httpx(response)
        if not result.is_success:
            message = "Unknown error"
            error = result.data.get("error") if isinstance(result.data, dict) else None
            if isinstance(error, dict):
                message = error.get("message") or message
            elif error:
                message = str(error)
            logger.error(f"Extraction service error {result.status_code}: {error_detail(response)}")
            raise UpstreamServiceError(
                f"Extraction service error: {message}",
                status_code=result.status_code,
                response=error_detail(response),
                call="chat.completions",
            )

        try:
            content = result.data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content:
            logger.error(f"Invalid extraction service response: {error_detail(response)}")
            raise UpstreamServiceError(
                "Invalid response from extraction service",
                status_code=result.status_code,
                response=error_detail(response),
                call="chat.completions",
            )

        return content
