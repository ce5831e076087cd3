"""
HTTP Fetcher Module
===================

Provides bounded-timeout HTTP fetching with browser-like headers.
Network failures and timeouts are reported on the FetchResult instead
of being raised, so callers can treat them as a miss and move on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx

from barcode_lookup.lookup.errors import TransientFetchError

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
JSON_ACCEPT = "application/json"


def build_headers(user_agent: str, accept: str = HTML_ACCEPT) -> dict[str, str]:
    """Browser-like request headers with no-cache directives."""
    return {
        "User-Agent": user_agent,
        "Accept": accept,
        "Accept-Language": "en-US,en;q=0.5",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


@dataclass
class FetchResult:
    """Result of fetching a URL."""

    url: str
    content: bytes
    mime_type: str
    status_code: int
    fetched_at: datetime
    user_agent: str = ""
    elapsed_ms: float | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """Check if fetch was successful."""
        return self.error is None and 200 <= self.status_code < 300

    @property
    def is_http_not_found(self) -> bool:
        """True for an explicit HTTP 404."""
        return self.error is None and self.status_code == 404

    @property
    def text(self) -> str:
        """Body decoded as UTF-8, replacing undecodable bytes."""
        return self.content.decode("utf-8", errors="replace")

    def raise_for_transport(self) -> None:
        """Raise TransientFetchError if the request never got a response."""
        if self.error is not None:
            raise TransientFetchError(self.url, self.error)


class Fetcher:
    """
    Async HTTP fetcher.

    Every request carries a fixed timeout. A shared httpx.AsyncClient can
    be injected (tests pass one built on httpx.MockTransport); otherwise a
    short-lived client is opened per request.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = client

    async def fetch(
        self,
        url: str,
        user_agent: str,
        accept: str = HTML_ACCEPT,
        method: str = "GET",
        timeout: float | None = None,
    ) -> FetchResult:
        """
        Fetch a URL once.

        Args:
            url: URL to fetch
            user_agent: User-Agent header value
            accept: Accept header value
            method: HTTP method (GET or HEAD)
            timeout: Override of the fetcher timeout

        Returns:
            FetchResult with content, or with error set on network failure
        """
        fetched_at = datetime.now(UTC)
        timeout = timeout if timeout is not None else self.timeout
        headers = build_headers(user_agent, accept)
        start = time.monotonic()

        logger.debug(f"{method} {url} (agent: {user_agent[:20]}...)")
        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, headers=headers, timeout=timeout, follow_redirects=True
                )
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.request(
                        method, url, headers=headers, follow_redirects=True
                    )
        except httpx.TimeoutException:
            logger.warning(f"Timeout after {timeout}s fetching {url}")
            return self._failed(url, user_agent, fetched_at, start, f"Timeout after {timeout}s")
        except httpx.HTTPError as e:
            logger.warning(f"HTTP error fetching {url}: {e}")
            return self._failed(url, user_agent, fetched_at, start, str(e) or type(e).__name__)

        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        logger.debug(f"Response from {url}: status={response.status_code}")

        return FetchResult(
            url=url,
            content=response.content,
            mime_type=mime_type,
            status_code=response.status_code,
            fetched_at=fetched_at,
            user_agent=user_agent,
            elapsed_ms=(time.monotonic() - start) * 1000,
        )

    @staticmethod
    def _failed(
        url: str, user_agent: str, fetched_at: datetime, start: float, error: str
    ) -> FetchResult:
        return FetchResult(
            url=url,
            content=b"",
            mime_type="",
            status_code=0,
            fetched_at=fetched_at,
            user_agent=user_agent,
            elapsed_ms=(time.monotonic() - start) * 1000,
            error=error,
        )

    async def aclose(self) -> None:
        """Close the injected client, if any."""
        if self._client is not None:
            await self._client.aclose()
