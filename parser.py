"""
Read-only HTML document handle for the image extractors.

Wraps a BeautifulSoup tree and exposes only query methods that return
plain strings and attribute dicts, so no extractor can mutate the tree
another extractor will look at. Also home to the small parsers for the
embedded formats the extractors read: srcset lists, JSON-LD blocks and
packed size-keyed image maps.
"""

import json
import math
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Tag

from errors import ParseError


class ParsedDocument:
    """Parsed page. Every query returns copies, never live tags."""

    __slots__ = ("_soup",)

    def __init__(self, soup: BeautifulSoup):
        self._soup = soup

    def meta_content(self, attr: str, value: str) -> str | None:
        """Content of the first <meta attr="value"> tag, or None if missing/empty."""
        tag = self._soup.find("meta", attrs={attr: value})
        if not isinstance(tag, Tag):
            return None
        content = tag.get("content")
        if not isinstance(content, str):
            return None
        return content.strip() or None

    def json_ld_texts(self) -> list[str]:
        """Raw text of every <script type="application/ld+json"> block, in order."""
        texts: list[str] = []
        for tag in self._soup.find_all("script", attrs={"type": "application/ld+json"}):
            text = tag.string
            if text and text.strip():
                texts.append(str(text))
        return texts

    def first_attrs(self, selector: str) -> dict[str, str] | None:
        """Attributes of the first element matching a CSS selector."""
        tag = self._soup.select_one(selector)
        if tag is None:
            return None
        return _attrs(tag)

    def images(self) -> list[dict[str, str]]:
        """Attributes of every <img> in document order."""
        return [_attrs(tag) for tag in self._soup.find_all("img")]


def parse_html(html: str) -> ParsedDocument:
    return ParsedDocument(BeautifulSoup(html, "lxml"))


def _attrs(tag: Tag) -> dict[str, str]:
    # Multi-valued attributes (class, rel) come back as lists
    out: dict[str, str] = {}
    for key, value in tag.attrs.items():
        out[key] = " ".join(value) if isinstance(value, list) else str(value)
    return out


# ---------------------------------------------------------------------------
# srcset
# ---------------------------------------------------------------------------


def split_srcset(srcset: str | None) -> list[str]:
    """Return the URL of every srcset entry, in order.

    Splits on the comma that ends an entry rather than on every comma,
    because CDN URLs (crop/resize parameters) often contain commas.
    """
    if not srcset:
        return []

    urls: list[str] = []
    i, n = 0, len(srcset)
    while i < n:
        # Skip separators between entries
        while i < n and (srcset[i].isspace() or srcset[i] == ","):
            i += 1
        if i >= n:
            break

        start = i
        while i < n and not srcset[i].isspace():
            i += 1
        url = srcset[start:i]

        if url.endswith(","):
            # "a.jpg, b.jpg" style: the entry had no descriptor
            url = url.rstrip(",")
        else:
            # Skip the descriptor ("2x", "800w") up to the next comma
            while i < n and srcset[i] != ",":
                i += 1

        if url:
            urls.append(url)
    return urls


# ---------------------------------------------------------------------------
# Embedded JSON
# ---------------------------------------------------------------------------


def load_json_block(text: str) -> Any:
    """Decode one embedded JSON payload. Raises ParseError on malformed input."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        raise ParseError(f"malformed JSON block: {exc}") from exc


def parse_size_map(raw: str | None) -> list[tuple[str, int, int]]:
    """Parse a packed size-keyed image map: {"<url>": [width, height], ...}.

    Returns (url, width, height) in encounter order. Entries whose value is
    not a [width, height] pair of numbers are dropped. Raises ParseError when
    the attribute is not a JSON object at all.
    """
    entries: list[tuple[str, int, int]] = []
    for url, size in _load_size_map(raw).items():
        if not isinstance(size, list) or len(size) < 2:
            continue
        width, height = size[0], size[1]
        if not _is_number(width) or not _is_number(height):
            continue
        entries.append((url, int(width), int(height)))
    return entries


def size_map_urls(raw: str | None) -> list[str]:
    """All URLs (keys) of a packed size-keyed image map, whatever their sizes."""
    return list(_load_size_map(raw))


def _load_size_map(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    # Some pages double-encode the attribute
    data = load_json_block(raw.replace("&quot;", '"'))
    if not isinstance(data, dict):
        raise ParseError(f"size map is a {type(data).__name__}, expected an object")
    return data


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
