import asyncio
import io

import httpx
import pytest
from PIL import Image

from fetcher import PageFetcher


def make_image(width: int, height: int, fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    mode = "RGBA" if len(color) == 4 else "RGB"
    Image.new(mode, (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


class FakeSite:
    """In-memory web: URL -> (status, body, content type). Records every request."""

    def __init__(self):
        self.routes: dict[str, tuple[int, bytes, str]] = {}
        self.requests: list[httpx.Request] = []
        self.clients: list[httpx.AsyncClient] = []

    def page(self, url: str, html: str, status: int = 200) -> None:
        self.routes[url] = (status, html.encode("utf-8"), "text/html; charset=utf-8")

    def image(self, url: str, data: bytes, status: int = 200) -> None:
        self.routes[url] = (status, data, "image/png")

    def error(self, url: str, status: int) -> None:
        self.routes[url] = (status, b"nope", "text/plain")

    def requested(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url) == url)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body, content_type = self.routes.get(str(request.url), (404, b"not found", "text/plain"))
        return httpx.Response(status, content=body, headers={"Content-Type": content_type})

    def fetcher(self) -> PageFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler), follow_redirects=True)
        self.clients.append(client)
        return PageFetcher(client=client)

    async def aclose(self) -> None:
        for client in self.clients:
            await client.aclose()


@pytest.fixture
def site():
    fake = FakeSite()
    yield fake
    asyncio.run(fake.aclose())
