"""
URL helpers: resolving candidate URLs and classifying hosts and beacons.

None of these raise on malformed input; a URL that cannot be parsed is
simply "not a value" (absolutize) or "not a match" (the predicates).
"""

import re
from urllib.parse import urljoin, urlsplit

_MARKETPLACE_HOST = re.compile(r"(^|\.)amazon\.", re.IGNORECASE)
_MEDIA_CDN = re.compile(r"m\.media-amazon\.com/images/", re.IGNORECASE)
# Marketplace analytics beacons, e.g. https://fls-na.amazon.com/1/batch/1/OE/
_BEACON = re.compile(r"fls-.*\.amazon\.com/.*batch", re.IGNORECASE)
_PIXEL_PATH = re.compile(r"pixel", re.IGNORECASE)


def absolutize(url: str | None, base: str | None) -> str | None:
    """Resolve a possibly relative or protocol-relative URL against base.

    Returns None when url is empty, cannot be resolved, or is malformed.
    """
    if not url or not isinstance(url, str):
        return None
    url = url.strip()
    if not url:
        return None
    if url.startswith("//"):
        return "https:" + url
    lowered = url.lower()
    if lowered.startswith(("http://", "https://", "data:")):
        return url
    if not base:
        return None
    try:
        resolved = urljoin(base, url)
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return None
    return resolved


def _hostname(url: str) -> str | None:
    try:
        return urlsplit(url).hostname
    except (ValueError, AttributeError):
        return None


def is_known_marketplace_url(url: str | None) -> bool:
    """True for any host in the marketplace domain family (amazon.com, amazon.co.uk, ...)."""
    if not url:
        return False
    host = _hostname(url)
    return bool(host) and bool(_MARKETPLACE_HOST.search(host))


def is_tracking_pixel_url(url: str | None) -> bool:
    """True for known beacon endpoints and any URL whose path mentions 'pixel'."""
    if not url:
        return False
    if _BEACON.search(url):
        return True
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url
    return bool(_PIXEL_PATH.search(path))


def is_data_url(url: str | None) -> bool:
    return bool(url) and url.lstrip().lower().startswith("data:")


def is_media_cdn_url(url: str | None) -> bool:
    return bool(url) and bool(_MEDIA_CDN.search(url))


def is_fetchable_candidate(url: str | None) -> bool:
    """An absolute http(s) URL that is neither inline data nor a tracking pixel."""
    if not url or is_data_url(url) or is_tracking_pixel_url(url):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)
