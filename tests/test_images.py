import asyncio

import pytest

from errors import DegenerateImageError, HttpError
from images import fetch_with_fallback, is_degenerate, probe_dimensions
from models import ImageDimensions
from parser import parse_html
from tests.conftest import make_image

PAGE_URL = "https://example.com/p"
CANDIDATE = "https://example.com/img/og.jpg"
FALLBACK = "https://example.com/img/body.jpg"

PAGE = """<html><head><meta property="og:image" content="/img/og.jpg"></head>
<body><img src="/img/body.jpg"></body></html>"""


def run(coro):
    return asyncio.run(coro)


def test_probe_dimensions():
    assert probe_dimensions(make_image(120, 80)) == ImageDimensions(120, 80)
    assert probe_dimensions(make_image(30, 40, fmt="JPEG")) == ImageDimensions(30, 40)
    assert probe_dimensions(b"definitely not an image") is None
    assert probe_dimensions(b"") is None


@pytest.mark.parametrize(
    "dims, expected",
    [
        (None, True),
        (ImageDimensions(1, 1), True),
        (ImageDimensions(50, 50), True),
        (ImageDimensions(99, 100), True),
        (ImageDimensions(100, 100), False),
        (ImageDimensions(200, 200), False),
        (ImageDimensions(1000, 20), False),
    ],
)
def test_is_degenerate(dims, expected):
    assert is_degenerate(dims, 10_000) is expected


def test_large_image_needs_no_fallback(site):
    site.image(CANDIDATE, make_image(200, 200))
    site.image(FALLBACK, make_image(600, 600))

    image = run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))

    assert image.url == CANDIDATE
    assert image.dimensions == ImageDimensions(200, 200)
    assert not image.fallback_used
    assert site.requested(FALLBACK) == 0


def test_image_request_headers(site):
    site.image(CANDIDATE, make_image(200, 200))
    run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))

    request = site.requests[0]
    assert request.headers["Referer"] == PAGE_URL
    assert request.headers["Accept"].startswith("image/")
    assert "image/avif" not in request.headers["Accept"]
    assert "Mozilla/5.0" in request.headers["User-Agent"]


def test_tiny_image_triggers_exactly_one_fallback(site):
    site.image(CANDIDATE, make_image(50, 50))
    site.image(FALLBACK, make_image(400, 300))

    image = run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))

    assert image.url == FALLBACK
    assert image.fallback_used
    assert image.dimensions == ImageDimensions(400, 300)
    assert site.requested(CANDIDATE) == 1
    assert site.requested(FALLBACK) == 1


def test_fallback_is_used_even_if_also_tiny(site):
    site.image(CANDIDATE, make_image(50, 50))
    site.image(FALLBACK, make_image(10, 10))

    image = run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))

    assert image.url == FALLBACK
    assert image.dimensions == ImageDimensions(10, 10)
    assert len(site.requests) == 2


def test_undecodable_image_triggers_fallback(site):
    site.image(CANDIDATE, b"<html>not an image</html>")
    site.image(FALLBACK, make_image(300, 300))

    image = run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))
    assert image.url == FALLBACK


def test_no_fallback_when_generic_scan_finds_the_same_url(site):
    page = '<html><body><img src="/img/og.jpg"></body></html>'
    site.image(CANDIDATE, make_image(50, 50))

    image = run(fetch_with_fallback(site.fetcher(), parse_html(page), PAGE_URL, CANDIDATE))

    assert image.url == CANDIDATE
    assert not image.fallback_used
    assert len(site.requests) == 1


def test_no_fallback_when_page_has_no_other_image(site):
    site.image(CANDIDATE, make_image(50, 50))
    image = run(fetch_with_fallback(site.fetcher(), parse_html("<html></html>"), PAGE_URL, CANDIDATE))
    assert image.url == CANDIDATE
    assert len(site.requests) == 1


def test_relative_fallback_is_absolutized_against_page(site):
    page = '<html><body><img src="../alt/b.jpg"></body></html>'
    fallback = "https://example.com/alt/b.jpg"
    site.image(CANDIDATE, make_image(50, 50))
    site.image(fallback, make_image(300, 300))

    image = run(fetch_with_fallback(site.fetcher(), parse_html(page), "https://example.com/x/p", CANDIDATE))
    assert image.url == fallback


def test_fallback_fetch_failure_propagates(site):
    site.image(CANDIDATE, make_image(50, 50))
    site.error(FALLBACK, 503)

    with pytest.raises(HttpError) as exc_info:
        run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))
    assert exc_info.value.status == 503
    assert exc_info.value.url == FALLBACK


def test_candidate_fetch_failure_propagates(site):
    site.error(CANDIDATE, 404)
    with pytest.raises(HttpError):
        run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE))


def test_require_valid_rejects_still_degenerate_image(site):
    site.image(CANDIDATE, make_image(50, 50))
    site.image(FALLBACK, make_image(20, 20))

    with pytest.raises(DegenerateImageError):
        run(fetch_with_fallback(site.fetcher(), parse_html(PAGE), PAGE_URL, CANDIDATE, require_valid=True))


def test_fake_site_closes_its_clients(site):
    site.fetcher()
    site.fetcher()
    run(site.aclose())
    assert all(client.is_closed for client in site.clients)
