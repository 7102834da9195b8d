"""Async HTTP client shared by the VCS providers."""

import asyncio
import time
from logging import getLogger
from typing import Any

import httpx

logger = getLogger(__name__)

# GitHub and GitLab report rate limits under different header names
_RATE_LIMIT_REMAINING_HEADERS = ("X-RateLimit-Remaining", "RateLimit-Remaining")
_RATE_LIMIT_RESET_HEADERS = ("X-RateLimit-Reset", "RateLimit-Reset")


class APIClient:
    """Async REST client with retry handling for timeouts and rate limits."""

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        """Initialize API client.

        Args:
            base_url: API root URL, without trailing slash
            headers: Headers sent with every request (authentication, accept)
            timeout: Request timeout in seconds
            max_retries: Maximum retries for timeouts and rate limited requests
        """
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self.max_retries = max_retries
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "APIClient":
        """Enter async context manager."""
        self._client = httpx.AsyncClient(
            headers=self.headers,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        retry_count: int = 0,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make HTTP request with automatic retry on timeout and rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: URL to request
            retry_count: Current retry attempt (internal use)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            httpx.Response object

        Raises:
            httpx.HTTPStatusError: If the request fails after retries
            httpx.TimeoutException: If request times out after retries
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use async with context manager")

        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        except httpx.TimeoutException:
            if retry_count < self.max_retries:
                wait_time = 2**retry_count  # 1, 2, 4 seconds
                logger.warning(
                    f"Timeout on {method} {url} (attempt {retry_count + 1}/{self.max_retries}). "
                    f"Waiting {wait_time} seconds before retry..."
                )
                await asyncio.sleep(wait_time)
                return await self._request_with_retry(method, url, retry_count + 1, **kwargs)
            logger.error(f"{method} {url} failed after {self.max_retries} retries due to timeout")
            raise

        except httpx.HTTPStatusError as e:
            if e.response.status_code in (403, 429) and retry_count < self.max_retries:
                wait_time = _rate_limit_wait(e.response, retry_count)
                if wait_time is not None:
                    logger.warning(
                        f"Rate limit hit on {method} {url} (attempt {retry_count + 1}/{self.max_retries}). "
                        f"Waiting {wait_time} seconds before retry..."
                    )
                    await asyncio.sleep(wait_time)
                    return await self._request_with_retry(method, url, retry_count + 1, **kwargs)
            raise

    async def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request relative to the API root and decode the JSON body.

        Returns:
            Decoded JSON, or None for empty responses
        """
        response = await self._request_with_retry(method, self.url(path), **kwargs)
        if not response.content:
            return None
        return response.json()

    async def get_paginated(
        self,
        path: str,
        per_page: int = 100,
        params: dict[str, Any] | None = None,
    ) -> list[Any]:
        """Fetch every page of a list endpoint using page/per_page parameters.

        Args:
            path: Endpoint path relative to the API root
            per_page: Page size (both GitHub and GitLab cap this at 100)
            params: Additional query parameters

        Returns:
            Items of all pages concatenated
        """
        page = 1
        all_items: list[Any] = []

        while True:
            items = await self.request_json(
                "GET",
                path,
                params={**(params or {}), "per_page": per_page, "page": page},
            )
            if not items:
                break

            all_items.extend(items)

            if len(items) < per_page:
                break

            page += 1

        return all_items


def _rate_limit_wait(response: httpx.Response, retry_count: int) -> int | None:
    """Work out how long to wait for a rate limited response.

    Returns:
        Seconds to wait (capped at 60), or None if the response is not a rate limit
    """
    remaining = next((response.headers[h] for h in _RATE_LIMIT_REMAINING_HEADERS if h in response.headers), "")
    if response.status_code != 429 and remaining != "0":
        return None

    reset_time = next((response.headers[h] for h in _RATE_LIMIT_RESET_HEADERS if h in response.headers), None)
    if reset_time and reset_time.isdigit():
        wait_time = min(int(reset_time) - int(time.time()), 60)
        return max(wait_time, 1)
    return 2**retry_count
