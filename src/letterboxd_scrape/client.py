"""
Transport client: one GET per call, classified failures, no retries or pacing.

Pacing belongs to the caller, who can pass a before_request hook that runs
ahead of every request (a sleep, a token bucket, a semaphore...).
"""
import inspect
import logging
from typing import Awaitable, Callable

import httpx
from selectolax.parser import HTMLParser

from .config import DOMAIN, HTTP_TIMEOUT, SCRAPER_HTTP2, USER_AGENT
from .document import Document
from .errors import NotFoundError, RestrictedContentError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Referer": f"{DOMAIN}/",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

BeforeRequest = Callable[[str], None]
AsyncBeforeRequest = Callable[[str], Awaitable[None] | None]


def _document_from_response(url: str, resp: httpx.Response) -> Document:
    """Map a response to a Document or to the matching failure kind."""
    status = resp.status_code
    if status in (404, 410):
        raise NotFoundError(url, f"HTTP {status}")
    if status in (401, 403):
        raise RestrictedContentError(url, f"HTTP {status}")
    if not 200 <= status < 300:
        raise TransportError(url, f"HTTP {status}", status_code=status)

    body = resp.text
    if not body or not body.strip():
        raise TransportError(url, "empty response body", status_code=status)
    return Document(HTMLParser(body), url=url)


class LetterboxdClient:
    """Blocking transport built on httpx.Client."""

    def __init__(
        self,
        timeout: float = HTTP_TIMEOUT,
        before_request: BeforeRequest | None = None,
        http2: bool = SCRAPER_HTTP2,
        transport: httpx.BaseTransport | None = None,
    ):
        self.before_request = before_request
        self.client = httpx.Client(
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            timeout=timeout,
            http2=http2,
            transport=transport,
        )

    def fetch(self, url: str) -> Document:
        if self.before_request is not None:
            self.before_request(url)
        logger.debug(f"GET {url}")
        try:
            resp = self.client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning(f"Timeout on {url}: {exc}")
            raise TransportError(url, exc) from exc
        except httpx.HTTPError as exc:
            logger.warning(f"Request error on {url}: {type(exc).__name__}: {exc}")
            raise TransportError(url, exc) from exc
        return _document_from_response(url, resp)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class AsyncLetterboxdClient:
    """Non-blocking transport built on httpx.AsyncClient; safe to share across tasks."""

    def __init__(
        self,
        timeout: float = HTTP_TIMEOUT,
        before_request: AsyncBeforeRequest | None = None,
        http2: bool = SCRAPER_HTTP2,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.before_request = before_request
        self.client = httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            timeout=timeout,
            http2=http2,
            transport=transport,
        )

    async def fetch(self, url: str) -> Document:
        if self.before_request is not None:
            result = self.before_request(url)
            if inspect.isawaitable(result):
                await result
        logger.debug(f"GET {url}")
        try:
            resp = await self.client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning(f"Timeout on {url}: {exc}")
            raise TransportError(url, exc) from exc
        except httpx.HTTPError as exc:
            logger.warning(f"Request error on {url}: {type(exc).__name__}: {exc}")
            raise TransportError(url, exc) from exc
        return _document_from_response(url, resp)

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
