"""
Base HTTP client shared by all source adapters.

Handles:
- HTTP requests with retries and exponential backoff
- Rate limiting (sliding one-minute window per client)
- 429 + Retry-After handling
- Response caching (Redis preferred, in-memory fallback)

Clients return raw JSON payloads. Normalizers in ``bioevidence.normalizers``
turn them into canonical records.
"""

import asyncio
import logging
import time
from typing import Any

import httpx

from bioevidence.cache import CacheBackend, build_cache, make_cache_key
from bioevidence.exceptions import (
    AuthenticationError,
    ConnectorError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    TimeoutError,
    ValidationError,
)
from bioevidence.settings import PipelineSettings, get_settings

logger = logging.getLogger(__name__)


class SourceClient:
    """
    Low-level async HTTP client for one public data source.

    Subclasses set ``connector`` and override ``_default_base_url`` and
    ``_rate_limit_rpm`` to read their values from settings.

    Example:
        async with ChEMBLClient() as chembl:
            data = await chembl.get("/target/CHEMBL203.json")
    """

    connector: str = "source"

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        base_url: str | None = None,
        max_retries: int | None = None,
        cache: CacheBackend | None = None,
        cache_enabled: bool = True,
    ):
        self.settings = settings or get_settings()
        self.base_url = base_url or self._default_base_url()
        self.timeout = self.settings.http_timeout
        self.max_retries = (
            self.settings.max_retries if max_retries is None else max_retries
        )
        self.cache_enabled = cache_enabled

        self._client: httpx.AsyncClient | None = None
        self._cache = cache
        self._owns_cache = cache is None
        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()

    def _default_base_url(self) -> str:
        raise NotImplementedError

    def _rate_limit_rpm(self) -> int:
        return 60

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialize HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.settings.user_agent,
                },
                follow_redirects=True,
            )
        return self._client

    async def _get_cache(self) -> CacheBackend | None:
        if not self.cache_enabled:
            return None
        if self._cache is None:
            self._cache = await build_cache(self.settings)
        return self._cache

    # =========================================================================
    # Rate Limiting
    # =========================================================================

    async def _wait_for_rate_limit(self) -> None:
        """Wait if necessary to respect the per-minute request budget."""
        async with self._rate_lock:
            now = time.monotonic()
            window_start = now - 60
            self._request_times = [t for t in self._request_times if t > window_start]

            if len(self._request_times) >= self._rate_limit_rpm():
                wait_time = self._request_times[0] - window_start + 0.1
                if wait_time > 0:
                    logger.debug(
                        f"[{self.connector}] Rate limit reached, waiting {wait_time:.2f}s"
                    )
                    await asyncio.sleep(wait_time)

            self._request_times.append(time.monotonic())

    def _backoff_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay."""
        delay = self.settings.retry_backoff_base * (2**attempt)
        return min(delay, self.settings.retry_backoff_max)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    async def get(
        self,
        endpoint: str,
        params: dict | None = None,
        cache_ttl: int | None = None,
    ) -> Any:
        """
        Make GET request with caching and retries.

        Args:
            endpoint: API endpoint relative to base_url
            params: Query parameters
            cache_ttl: Cache TTL in seconds (default: settings.cache_ttl)

        Returns:
            Parsed JSON response

        Raises:
            NotFoundError: Resource not found (404), never retried
            AuthenticationError: 401/403, never retried
            RateLimitError: Still rate limited after retries
            ServiceUnavailableError: 5xx after retries
            TimeoutError: Timed out after retries
            ConnectorError: Other transport or HTTP errors
        """
        cache = await self._get_cache()
        cache_key = make_cache_key(self.connector, endpoint, params)
        if cache is not None:
            cached = await cache.get(cache_key)
            if cached is not None:
                if self.settings.log_cache_hits:
                    logger.debug(f"[{self.connector}] Cache hit: {endpoint}")
                return cached

        last_error: ConnectorError | None = None

        for attempt in range(self.max_retries + 1):
            try:
                data = await self._do_request(endpoint, params)
            except ConnectorError as e:
                if not e.retryable:
                    raise
                last_error = e
                if attempt < self.max_retries:
                    if isinstance(e, RateLimitError) and e.retry_after:
                        wait_time = e.retry_after
                    else:
                        wait_time = self._backoff_delay(attempt)
                    logger.warning(
                        f"[{self.connector}] {type(e).__name__}, retrying in {wait_time}s "
                        f"(attempt {attempt + 1}/{self.max_retries + 1})"
                    )
                    await asyncio.sleep(wait_time)
                continue

            if cache is not None:
                await cache.set(cache_key, data, cache_ttl or self.settings.cache_ttl)
            return data

        raise last_error or ConnectorError("Request failed", connector=self.connector)

    async def _do_request(self, endpoint: str, params: dict | None) -> Any:
        """Execute a single GET and map the response status to an exception."""
        await self._wait_for_rate_limit()
        client = await self._get_client()

        if self.settings.log_requests:
            logger.info(f"[{self.connector}] GET {endpoint}")

        try:
            response = await client.get(endpoint, params=params)
        except httpx.TimeoutException as e:
            raise TimeoutError(
                f"Request timed out after {self.timeout}s",
                connector=self.connector,
                timeout=self.timeout,
            ) from e
        except httpx.RequestError as e:
            raise ConnectorError(f"Request failed: {e}", connector=self.connector) from e

        status = response.status_code
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                connector=self.connector,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if status == 404:
            raise NotFoundError("resource", endpoint, connector=self.connector)
        if status in (401, 403):
            raise AuthenticationError(connector=self.connector)
        if status >= 500:
            raise ServiceUnavailableError(
                f"Server error: {status}",
                connector=self.connector,
                status_code=status,
            )
        if status >= 400:
            raise ConnectorError(
                "Request rejected",
                connector=self.connector,
                status_code=status,
                response_body=response.text[:500],
            )

        try:
            return response.json()
        except ValueError as e:
            raise ValidationError(
                f"Malformed JSON from {endpoint}", connector=self.connector
            ) from e

    # =========================================================================
    # Cleanup
    # =========================================================================

    async def close(self) -> None:
        """Close HTTP client and cache connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._owns_cache and self._cache is not None:
            await self._cache.close()
            self._cache = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
