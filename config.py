"""
Run settings and HTTP/image constants.

Defaults mirror the site layout the tool was written for: the catalog lives
at src/data/deals.json and images are served from public/images as /images/.
"""

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_CATALOG_PATH = Path("src") / "data" / "deals.json"
DEFAULT_IMAGES_DIR = Path("public") / "images"
IMAGE_URL_PREFIX = "/images"

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0 Safari/537.36"
)

PAGE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

IMAGE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "image/webp,image/*,*/*;q=0.8",
}

REQUEST_TIMEOUT = 30.0  # seconds, per request
REQUEST_DELAY = 0.4  # seconds between successfully enriched records

# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

MIN_PIXEL_AREA = 10_000  # anything below ~100x100 is a pixel, icon or sprite
OUTPUT_SIZE = 800
WEBP_QUALITY = 82
OUTPUT_EXTENSION = "webp"


class EnrichConfig(BaseModel):
    """Settings for one enrichment run."""

    catalog_path: Path = DEFAULT_CATALOG_PATH
    images_dir: Path = DEFAULT_IMAGES_DIR
    url_prefix: str = IMAGE_URL_PREFIX
    delay: float = Field(default=REQUEST_DELAY, ge=0)
    timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    min_pixel_area: int = Field(default=MIN_PIXEL_AREA, ge=0)
    output_size: int = Field(default=OUTPUT_SIZE, gt=0)
    quality: int = Field(default=WEBP_QUALITY, ge=1, le=100)
    limit: int | None = Field(default=None, ge=0)  # max eligible records per run
    dry_run: bool = False
    require_valid_image: bool = False  # fail records whose image stays degenerate

    def output_path(self, record_id: str) -> Path:
        return self.images_dir / f"{record_id}.{OUTPUT_EXTENSION}"

    def public_path(self, record_id: str) -> str:
        return f"{self.url_prefix.rstrip('/')}/{record_id}.{OUTPUT_EXTENSION}"
