"""Shared HTTP plumbing for external service connectors."""

from dataclasses import dataclass
from typing import Any

import httpx

from recipestructurer.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ConnectorResponse:
    """Standardized response from connector API calls."""

    data: Any
    status_code: int
    headers: dict[str, str]

    @property
    def is_success(self) -> bool:
        """Check if response indicates success."""
        return 200 <= self.status_code < 300

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "ConnectorResponse":
        """Wrap an httpx response, decoding JSON bodies when possible."""
        try:
            data = response.json() if response.content else {}
        except ValueError:
            logger.warning(f"Non-JSON response body from {response.request.url}")
            data = {}
        return cls(data=data, status_code=response.status_code, headers=dict(response.headers))


def error_detail(response: httpx.Response, limit: int = 500) -> str:
    """Short excerpt of a failed response body for logs and errors."""
    return response.text[:limit] if response.text else "No details"


class HttpConnector:
    """Base class owning a lazily created ``httpx.AsyncClient``."""

    DEFAULT_TIMEOUT = 30.0
    USER_AGENT = "RecipeStructurer/1.0"

    def __init__(
        self,
        base_url: str = "",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        """Return connector name for logging and identification."""
        return self.__class__.__name__

    def default_headers(self) -> dict[str, str]:
        return {"User-Agent": self.USER_AGENT}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self.default_headers(),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        await self._get_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
