"""
Image candidate extractors.

Each extractor scans a ParsedDocument for one class of evidence and returns
a single URL or None:

  - meta:            Open Graph / Twitter card tags
  - structured_data: JSON-LD blocks (Product, ImageObject, @graph)
  - marketplace:     marketplace product-page landmarks (#landingImage, ...)
  - generic:         every <img> src, srcset entry and packed size map

Malformed embedded JSON never escapes an extractor: it is logged at debug
level and treated as "nothing found from this source".
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from errors import ParseError
from parser import ParsedDocument, load_json_block, parse_size_map, size_map_urls, split_srcset
from urls import absolutize, is_data_url, is_media_cdn_url, is_tracking_pixel_url

logger = logging.getLogger(__name__)

# (attribute, value) pairs in priority order
META_IMAGE_TAGS = (
    ("property", "og:image"),
    ("property", "og:image:url"),
    ("name", "og:image"),
    ("name", "twitter:image"),
    ("name", "twitter:image:src"),
)

# Marketplace product-page landmarks, tried in order
MARKETPLACE_LANDMARKS = ("#landingImage", "#imgTagWrapperId img")

HIRES_ATTR = "data-old-hires"
SIZE_MAP_ATTR = "data-a-dynamic-image"


# ---------------------------------------------------------------------------
# Open Graph / Twitter meta
# ---------------------------------------------------------------------------


def extract_meta_image(doc: ParsedDocument) -> str | None:
    for attr, value in META_IMAGE_TAGS:
        content = doc.meta_content(attr, value)
        if content:
            return content
    return None


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------


def extract_structured_data_image(doc: ParsedDocument) -> str | None:
    """First image referenced by any JSON-LD block.

    Blocks are tried in document order. Within a block the top-level object
    wins, then list members, then @graph members.
    """
    for text in doc.json_ld_texts():
        try:
            data = load_json_block(text)
        except ParseError as exc:
            logger.debug(f"Skipping malformed JSON-LD block: {exc}")
            continue

        for obj in _structured_objects(data):
            found = _pull_image(obj)
            if found:
                return found
    return None


def _structured_objects(data: Any) -> list[dict]:
    objects: list[dict] = []
    if isinstance(data, dict):
        objects.append(data)
        graph = data.get("@graph")
        if isinstance(graph, list):
            objects.extend(item for item in graph if isinstance(item, dict))
    elif isinstance(data, list):
        objects.extend(item for item in data if isinstance(item, dict))
    return objects


def _pull_image(obj: dict) -> str | None:
    image = obj.get("image")
    if isinstance(image, str) and image:
        return image
    if isinstance(image, list) and image:
        return _image_ref(image[0])
    if isinstance(image, dict):
        found = _image_ref(image)
        if found:
            return found

    offers = obj.get("offers")
    if isinstance(offers, dict):
        offer_image = offers.get("image")
        if isinstance(offer_image, str) and offer_image:
            return offer_image
    return None


def _image_ref(value: Any) -> str | None:
    """A plain URL string or a schema.org ImageObject."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        for key in ("url", "contentUrl"):
            url = value.get(key)
            if isinstance(url, str) and url:
                return url
    return None


# ---------------------------------------------------------------------------
# Generic <img> scan
# ---------------------------------------------------------------------------


def extract_generic_large_image(doc: ParsedDocument, base_url: str | None = None) -> str | None:
    """Best image from a scan of every <img> on the page.

    Candidates come from src, every srcset entry and the keys of any packed
    size map. With a base_url they are absolutized against it; without one
    they are returned unresolved and the caller absolutizes. Tracking pixels
    and inline data: URLs are dropped. The marketplace media CDN wins over
    scan order.
    """
    candidates: list[str] = []
    for attrs in doc.images():
        src = attrs.get("src")
        if src:
            candidates.append(src)
        candidates.extend(split_srcset(attrs.get("srcset")))
        try:
            candidates.extend(size_map_urls(attrs.get(SIZE_MAP_ATTR)))
        except ParseError as exc:
            logger.debug(f"Skipping malformed {SIZE_MAP_ATTR}: {exc}")

    survivors: list[str] = []
    for raw in candidates:
        url = absolutize(raw, base_url) if base_url else _promote_protocol_relative(raw)
        if not url or is_data_url(url) or is_tracking_pixel_url(url):
            continue
        survivors.append(url)

    for url in survivors:
        if is_media_cdn_url(url):
            return url
    return survivors[0] if survivors else None


def _promote_protocol_relative(url: str) -> str | None:
    url = url.strip()
    if url.startswith("//"):
        return "https:" + url
    return url or None


# ---------------------------------------------------------------------------
# Marketplace landmarks
# ---------------------------------------------------------------------------


def extract_marketplace_image(doc: ParsedDocument) -> str | None:
    for selector in MARKETPLACE_LANDMARKS:
        attrs = doc.first_attrs(selector)
        if attrs is None:
            continue
        found = _landmark_image(attrs)
        if found:
            return found
    return extract_generic_large_image(doc)


def _landmark_image(attrs: dict[str, str]) -> str | None:
    """High-res override, then src, then the largest entry of the size map."""
    if attrs.get(HIRES_ATTR):
        return attrs[HIRES_ATTR]
    if attrs.get("src"):
        return attrs["src"]
    return largest_from_size_map(attrs.get(SIZE_MAP_ATTR))


def largest_from_size_map(raw: str | None) -> str | None:
    """URL with the largest width x height. Ties go to the first one seen."""
    try:
        entries = parse_size_map(raw)
    except ParseError as exc:
        logger.debug(f"Ignoring malformed {SIZE_MAP_ATTR}: {exc}")
        return None

    best: str | None = None
    best_area = 0
    for url, width, height in entries:
        area = width * height
        if area > best_area:
            best, best_area = url, area
    return best


# ---------------------------------------------------------------------------
# Strategy chains
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Strategy:
    """A named extractor. extract(doc, page_url) returns a candidate or None."""

    name: str
    extract: Callable[[ParsedDocument, str], str | None]


META = Strategy("meta", lambda doc, page_url: extract_meta_image(doc))
STRUCTURED_DATA = Strategy("structured_data", lambda doc, page_url: extract_structured_data_image(doc))
MARKETPLACE = Strategy("marketplace", lambda doc, page_url: extract_marketplace_image(doc))
GENERIC = Strategy("generic", extract_generic_large_image)

MARKETPLACE_CHAIN: tuple[Strategy, ...] = (MARKETPLACE, META, STRUCTURED_DATA, GENERIC)
GENERIC_CHAIN: tuple[Strategy, ...] = (META, STRUCTURED_DATA, GENERIC)
