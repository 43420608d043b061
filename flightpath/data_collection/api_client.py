"""
HTTP client base for external data providers
Performs one request per call and converts every failure into a typed error
"""

from typing import Any, Dict, Optional

import httpx

from flightpath.data_collection.rate_limiter import RateTracker
from flightpath.exceptions import DataUnavailableError, NetworkError, RateLimitError
from flightpath.utils.logger import get_logger


class ProviderClient:
    """
    Base class for provider adapters

    Retrying is the data service's job: a provider makes exactly one attempt
    and reports the outcome as a value or a typed exception. An injected
    httpx.AsyncClient is reused across calls, otherwise a short-lived client
    is opened per request.
    """

    name = "provider"
    rate_limit = 100

    def __init__(
        self,
        timeout: float = 10,
        client: Optional[httpx.AsyncClient] = None,
        logger=None
    ):
        """
        Initialize provider client

        Args:
            timeout: Per-request timeout in seconds
            client: Shared AsyncClient (optional)
            logger: Logger instance
        """
        self.timeout = timeout
        self.client = client
        self.logger = logger or get_logger()
        self.rate_tracker = RateTracker(self.name, self.rate_limit, logger=self.logger)
        self.call_count = 0

    def get_rate_limit(self) -> int:
        """Soft limit of calls per hour, reported but never enforced"""
        return self.rate_limit

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """
        Make a GET request and decode the JSON body

        Args:
            url: Endpoint URL
            params: Query parameters

        Returns:
            Decoded JSON payload

        Raises:
            NetworkError: Timeout, connection failure or unexpected status
                (retryable for timeouts, connection errors and HTTP 503)
            RateLimitError: HTTP 429
            DataUnavailableError: Body is not valid JSON
        """
        self.call_count += 1
        self.rate_tracker.record_call()
        self.logger.debug(f"{self.name} request: {url} {params}")

        try:
            if self.client is not None:
                response = await self.client.get(url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params)

        except httpx.TimeoutException as e:
            raise NetworkError(
                f"{self.name} request timed out", provider=self.name, retryable=True
            ) from e

        except httpx.TransportError as e:
            raise NetworkError(
                f"{self.name} connection failed: {e}", provider=self.name, retryable=True
            ) from e

        if response.status_code == 429:
            raise RateLimitError(f"{self.name} rate limit exceeded", provider=self.name)

        if response.status_code == 503:
            raise NetworkError(
                f"{self.name} service unavailable", provider=self.name,
                retryable=True, status_code=503
            )

        if response.status_code != 200:
            raise NetworkError(
                f"{self.name} request failed: {response.status_code}", provider=self.name,
                retryable=False, status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataUnavailableError(
                f"{self.name} returned invalid JSON", provider=self.name
            ) from e
