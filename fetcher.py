"""
HTTP access for pages and images.

One httpx.AsyncClient per run. Single attempt per request: retry policy, if
any, belongs to the caller.
"""

import logging

import httpx

from config import IMAGE_HEADERS, PAGE_HEADERS, REQUEST_TIMEOUT
from errors import FetchError, HttpError

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetches page HTML and image bytes with browser-like headers."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = REQUEST_TIMEOUT):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True, timeout=timeout)

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_html(self, url: str) -> str:
        resp = await self._get(url, PAGE_HEADERS)
        return resp.text

    async def fetch_image(self, url: str, referer: str | None = None) -> bytes:
        headers = dict(IMAGE_HEADERS)
        if referer:
            headers["Referer"] = referer
        resp = await self._get(url, headers)
        return resp.content

    async def _get(self, url: str, headers: dict[str, str]) -> httpx.Response:
        try:
            resp = await self._client.get(url, headers=headers, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc
        if not resp.is_success:
            raise HttpError(resp.status_code, url)
        logger.debug(f"GET {url} -> {resp.status_code} ({len(resp.content)} bytes)")
        return resp
