"""
Pytest configuration and fixtures.

Provides reusable fixtures for pipeline testing:
- settings: PipelineSettings with an in-memory cache and no delays
- mock_response_factory: Build MagicMock httpx responses
- mock_http: Inject an AsyncMock httpx client into a source client
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from bioevidence.settings import PipelineSettings

# =============================================================================
# Settings Fixture
# =============================================================================


@pytest.fixture
def settings() -> PipelineSettings:
    """
    Settings for tests: memory cache, zero backoff and zero source delay so
    retry paths run instantly.
    """
    return PipelineSettings(
        cache_backend="memory",
        max_retries=2,
        retry_backoff_base=0.0,
        retry_backoff_max=0.0,
        source_delay_seconds=0.0,
        log_requests=False,
    )


# =============================================================================
# HTTP Mocks
# =============================================================================


@pytest.fixture
def mock_response_factory():
    """Factory for creating mock httpx responses."""

    def _create_response(
        status_code: int = 200,
        json_data: dict | list | None = None,
        text: str = "",
        headers: dict | None = None,
    ) -> httpx.Response:
        response = MagicMock(spec=httpx.Response)
        response.status_code = status_code

        default_headers = {}
        if json_data is not None:
            default_headers["Content-Type"] = "application/json"
        response.headers = {**default_headers, **(headers or {})}
        response.text = text

        if json_data is not None:
            response.json.return_value = json_data
        else:
            response.json.side_effect = ValueError("No JSON")

        return response

    return _create_response


@pytest.fixture
def mock_http():
    """
    Return a function that injects a mocked httpx client into a source
    client; ``responses`` are returned by successive GETs.
    """

    def _inject(client, *responses) -> AsyncMock:
        http = AsyncMock(spec=httpx.AsyncClient)
        if len(responses) == 1:
            http.get = AsyncMock(return_value=responses[0])
        else:
            http.get = AsyncMock(side_effect=list(responses))
        client._client = http
        return http

    return _inject
