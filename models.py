from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DealRecord(BaseModel):
    """Validated view of one catalog entry.

    Only the fields the enrichment touches are declared; everything else a
    deal carries (price, tags, ...) rides along as extra data.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    url: str | None = None
    title: str | None = None
    image: str | None = None
    image_alt: str | None = Field(default=None, alias="imageAlt")

    @field_validator("id", "url", "title", "image", "image_alt", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        if isinstance(v, str):
            return v
        # Hand-edited catalogs sometimes carry numeric ids
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return None

    @property
    def needs_image(self) -> bool:
        """True when the record has no image yet and can be processed."""
        return not self.image and bool(self.id) and bool(self.url)

    @property
    def alt_text(self) -> str | None:
        return self.image_alt or self.title


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass
class FetchedImage:
    """Raw bytes of one download attempt plus decoded size (None if undecodable)."""

    url: str
    data: bytes
    dimensions: ImageDimensions | None = None
    fallback_used: bool = False
