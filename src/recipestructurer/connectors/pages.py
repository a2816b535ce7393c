"""Fetch raw recipe page text."""

from urllib.parse import urlparse

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from recipestructurer.config import get_settings
from recipestructurer.connectors.base import HttpConnector, error_detail
from recipestructurer.errors import FetchFailure
from recipestructurer.logging_config import get_logger

logger = get_logger(__name__)


class PageFetcher(HttpConnector):
    """Downloads a recipe page and returns its body as text.

    The body is handed on unmodified; turning HTML into clean text is left to
    the extraction service.
    """

    BACKOFF_BASE = 1
    BACKOFF_MAX = 10
    USER_AGENT = "Mozilla/5.0 (compatible; RecipeStructurer/1.0)"

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        super().__init__(
            timeout=timeout if timeout is not None else settings.fetch_timeout,
            transport=transport,
        )
        self.max_retries = max_retries if max_retries is not None else settings.fetch_max_retries

    @staticmethod
    def check_url(url: str) -> None:
        """Reject anything that is not an absolute http(s) URL."""
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise FetchFailure(f"Not a valid http(s) URL: {url!r}", url=url)

    async def fetch_text(self, url: str) -> str:
        """
        Fetch a page body.

        Raises:
            FetchFailure: On invalid URL, network failure, error status or empty body.
        """
        self.check_url(url)
        client = await self._get_client()

        @retry(
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.BACKOFF_BASE, max=self.BACKOFF_MAX),
            reraise=True,
        )
        async def _do_request() -> httpx.Response:
            return await client.get(url)

        logger.info(f"Fetching recipe page: {url}")
        try:
            response = await _do_request()
        except httpx.HTTPError as e:
            logger.error(f"Fetching {url} failed after {self.max_retries} attempts: {e}")
            raise FetchFailure(f"Failed to fetch recipe content: {e}", url=url) from e

        if response.status_code >= 400:
            logger.error(
                f"Page fetch returned {response.status_code} for {url}: {error_detail(response, 200)}"
            )
            raise FetchFailure(
                f"Failed to fetch recipe content (status {response.status_code})",
                url=url,
                status_code=response.status_code,
            )

        text = response.text
        if not text.strip():
            raise FetchFailure("Recipe page is empty", url=url, status_code=response.status_code)

        logger.debug(f"Fetched {len(text)} characters from {url}")
        return text
