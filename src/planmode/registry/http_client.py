"""Shared async HTTP helpers for registry and content fetching.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts, user-agent headers, and error mapping, so every fetch behaves the
same way and tests can inject an ``httpx.MockTransport``.

A 404 becomes ``NotFoundError``; every other HTTP status, timeout, or
transport failure becomes ``NetworkError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from planmode.exceptions import NetworkError, NotFoundError

logger = logging.getLogger(__name__)

# Timeout for all HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every request.
USER_AGENT: str = "planmode-cli/0.1"


def make_client(
    *,
    token: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``AsyncClient`` with planmode's standard headers.

    Args:
        token: Optional bearer token (e.g., a GitHub token).
        timeout: Request timeout in seconds.
        transport: Custom transport, mainly for tests.
    """
    headers = {"User-Agent": USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(
        timeout=timeout,
        headers=headers,
        follow_redirects=True,
        transport=transport,
    )


async def _get(client: httpx.AsyncClient | None, url: str) -> httpx.Response:
    owned = client is None
    client = client or make_client()
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise NetworkError(f"Timed out fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status == 404:
            raise NotFoundError(f"Not found: {url}") from exc
        logger.warning("HTTP %d from %s", status, url)
        raise NetworkError(f"HTTP {status} fetching {url}") from exc
    except httpx.RequestError as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise NetworkError(f"Request to {url} failed: {exc}") from exc
    finally:
        if owned:
            await client.aclose()


async def fetch_json(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> Any:
    """Fetch a URL and parse the response as JSON.

    Args:
        url: The URL to fetch.
        client: Client to reuse. A temporary one is created if omitted.

    Returns:
        Parsed JSON response.

    Raises:
        NotFoundError: On HTTP 404.
        NetworkError: On other HTTP errors, timeouts, or invalid JSON.
    """
    resp = await _get(client, url)
    try:
        return resp.json()
    except ValueError as exc:
        raise NetworkError(f"Invalid JSON from {url}: {exc}") from exc


async def fetch_text(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch a URL and return the response body as text.

    Raises:
        NotFoundError: On HTTP 404.
        NetworkError: On other HTTP errors or transport failures.
    """
    resp = await _get(client, url)
    return resp.text
