"""
Normalize a downloaded product image to a fixed square WebP.

"Cover" fit: scale so the shorter side fills the frame, then crop the longer
side. The crop window is anchored on the region with the most edge energy,
which keeps the product in frame on wide banners and tall lifestyle shots
better than a plain center crop.
"""

import io
import logging

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from config import OUTPUT_SIZE, WEBP_QUALITY
from errors import TransformError

logger = logging.getLogger(__name__)


def normalize_image(data: bytes, size: int = OUTPUT_SIZE, quality: int = WEBP_QUALITY) -> bytes:
    """Return size x size WebP bytes. Raises TransformError on undecodable input."""
    try:
        with Image.open(io.BytesIO(data)) as src:
            src.load()
            img = ImageOps.exif_transpose(src)
            img = _to_output_mode(img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise TransformError(f"cannot decode image: {exc}") from exc

    img = _cover(img, size)

    out = io.BytesIO()
    try:
        img.save(out, format="WEBP", quality=quality)
    except (OSError, ValueError, KeyError) as exc:
        raise TransformError(f"cannot encode WebP: {exc}") from exc
    return out.getvalue()


def _to_output_mode(img: Image.Image) -> Image.Image:
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    target = "RGBA" if has_alpha else "RGB"
    if img.mode != target:
        img = img.convert(target)
    return img


def _cover(img: Image.Image, size: int) -> Image.Image:
    width, height = img.size
    if width <= 0 or height <= 0:
        raise TransformError(f"empty image ({width}x{height})")

    scale = size / min(width, height)
    new_w = max(size, round(width * scale))
    new_h = max(size, round(height * scale))
    resized = img.resize((new_w, new_h), Image.Resampling.LANCZOS)

    if new_w > size:
        left = _salient_offset(resized, size, horizontal=True)
        box = (left, 0, left + size, size)
    else:
        top = _salient_offset(resized, size, horizontal=False)
        box = (0, top, size, top + size)
    logger.debug(f"  cover crop {box} from {new_w}x{new_h}")
    return resized.crop(box)


def _salient_offset(img: Image.Image, window: int, horizontal: bool) -> int:
    """Start of the window along the long axis that holds the most edge energy."""
    length = img.width if horizontal else img.height
    span = length - window
    if span <= 0:
        return 0
    if img.width < 3 or img.height < 3:
        return span // 2

    # The filter copies the 1px border through unfiltered; drop it
    edges = img.convert("L").filter(ImageFilter.FIND_EDGES)
    edges = edges.crop((1, 1, img.width - 1, img.height - 1))
    # Collapse the short axis: one mean edge value per column (or row)
    profile_size = (length - 2, 1) if horizontal else (1, length - 2)
    profile = [0, *edges.resize(profile_size, Image.Resampling.BOX).tobytes(), 0]

    prefix = [0]
    for value in profile:
        prefix.append(prefix[-1] + value)

    center = span // 2
    best, best_energy = center, prefix[center + window] - prefix[center]
    for start in range(span + 1):
        energy = prefix[start + window] - prefix[start]
        # Prefer the window closest to center on ties
        if energy > best_energy or (energy == best_energy and abs(start - center) < abs(best - center)):
            best, best_energy = start, energy
    return best
