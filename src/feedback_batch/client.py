"""
HTTP client for the remote text-analysis endpoint
"""

import logging
from types import TracebackType
from typing import Any, Self

import httpx

from .config import FrozenConfig
from .constants import DEFAULT_PAYLOAD_KEY, NETWORK_TIMEOUT, SUPPORTED_PAYLOAD_KEYS
from .exceptions import APIError, ConfigurationError, NetworkError

log = logging.getLogger(__name__)


class AnalysisClient:
    """Posts text to the analysis endpoint and returns its decoded body.

    The body is returned as-is (decoded JSON, or text when it is not JSON);
    making sense of it is the normalizer's job.

    Example:
        async with AnalysisClient("https://worker.example/") as client:
            raw = await client.analyze("id,review\\n1,Great fit")
    """

    def __init__(
        self,
        endpoint_url: str | None,
        *,
        payload_key: str = DEFAULT_PAYLOAD_KEY,
        timeout: float = NETWORK_TIMEOUT,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not endpoint_url:
            raise ConfigurationError(
                "No analysis endpoint configured. Set FEEDBACK_BATCH_ENDPOINT_URL "
                "or pass endpoint_url."
            )
        if payload_key not in SUPPORTED_PAYLOAD_KEYS:
            raise ConfigurationError(
                f"Unsupported payload key '{payload_key}'. "
                f"Expected one of: {', '.join(SUPPORTED_PAYLOAD_KEYS)}"
            )
        self.endpoint_url = endpoint_url
        self.payload_key = payload_key
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls, config: FrozenConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> "AnalysisClient":
        return cls(
            config.endpoint_url,
            payload_key=config.payload_key,
            timeout=config.timeout_seconds,
            api_key=config.api_key,
            transport=transport,
        )

    def _create_http_client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return httpx.AsyncClient(
            timeout=self.timeout, headers=headers, transport=self._transport
        )

    async def __aenter__(self) -> Self:
        if self._client is None:
            self._client = self._create_http_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def analyze(self, text: str) -> Any:
        """Send one piece of text (a row or a batch) for analysis.

        Raises:
            APIError: The endpoint answered with a non-2xx status.
            NetworkError: The request failed or timed out in transport.
        """
        if self._client is not None:
            return await self._post(self._client, text)
        # One-off call outside `async with`
        async with self._create_http_client() as client:
            return await self._post(client, text)

    async def _post(self, client: httpx.AsyncClient, text: str) -> Any:
        log.debug("POST %s (%d chars)", self.endpoint_url, len(text))
        try:
            response = await client.post(
                self.endpoint_url, json={self.payload_key: text}
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to analysis endpoint timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise APIError(
                f"Analysis endpoint returned HTTP {status}: {_short_body(e.response)}",
                status_code=status,
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Could not reach analysis endpoint: {e}") from e

        try:
            return response.json()
        except ValueError:
            return response.text


def _short_body(response: httpx.Response, limit: int = 200) -> str:
    text = response.text.strip()
    return text if len(text) <= limit else text[:limit] + "..."
