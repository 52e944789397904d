"""
Download-and-validate loop for a selected image candidate.

A download whose decoded size is unknown or below the minimum pixel area
(tracking pixels, spacer gifs, thumbnails) gets exactly one retry with the
best candidate from a full <img> scan of the same page.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

from config import MIN_PIXEL_AREA
from errors import DegenerateImageError
from extractors import extract_generic_large_image
from fetcher import PageFetcher
from models import FetchedImage, ImageDimensions
from parser import ParsedDocument
from urls import absolutize, is_fetchable_candidate

logger = logging.getLogger(__name__)


def probe_dimensions(data: bytes) -> ImageDimensions | None:
    """Decoded width/height, or None if Pillow cannot identify the bytes."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
        return None
    return ImageDimensions(width=width, height=height)


def is_degenerate(dimensions: ImageDimensions | None, min_area: int = MIN_PIXEL_AREA) -> bool:
    if dimensions is None:
        return True
    return dimensions.area < min_area


async def download(fetcher: PageFetcher, url: str, referer: str) -> FetchedImage:
    data = await fetcher.fetch_image(url, referer=referer)
    return FetchedImage(url=url, data=data, dimensions=probe_dimensions(data))


async def fetch_with_fallback(
    fetcher: PageFetcher,
    doc: ParsedDocument,
    page_url: str,
    candidate_url: str,
    min_area: int = MIN_PIXEL_AREA,
    require_valid: bool = False,
) -> FetchedImage:
    """Download candidate_url, falling back once to a generic-scan candidate.

    The fallback image is used whatever its size; there is no second round.
    With require_valid, an image that is still degenerate at the end raises
    DegenerateImageError instead of being passed on.
    """
    image = await download(fetcher, candidate_url, page_url)
    if not is_degenerate(image.dimensions, min_area):
        return image

    size = f"{image.dimensions.width}x{image.dimensions.height}" if image.dimensions else "undecodable"
    fallback = absolutize(extract_generic_large_image(doc, page_url), page_url)
    if fallback and fallback != candidate_url and is_fetchable_candidate(fallback):
        logger.info(f"  tiny image ({size}); trying fallback: {fallback}")
        image = await download(fetcher, fallback, page_url)
        image.fallback_used = True
    else:
        logger.info(f"  tiny image ({size}); no alternate candidate")

    if require_valid and is_degenerate(image.dimensions, min_area):
        raise DegenerateImageError(image.url, image.dimensions)
    return image
