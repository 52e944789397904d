"""
Deal catalog store: a JSON array of deal objects on disk.

Records stay the raw dicts they were loaded from so a rewrite keeps key
order and any fields this tool knows nothing about.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import orjson

from errors import StoreError
from models import DealRecord

logger = logging.getLogger(__name__)


@dataclass
class Catalog:
    path: Path
    records: list[dict] = field(default_factory=list)

    def deals(self) -> list[tuple[dict, DealRecord]]:
        """(raw record, validated view) pairs in catalog order."""
        return [(raw, DealRecord.model_validate(raw)) for raw in self.records]


def set_image(raw: dict, image_path: str, alt: str | None) -> None:
    """Fill image/imageAlt on a raw record. An existing imageAlt is kept."""
    raw["image"] = image_path
    if not raw.get("imageAlt") and alt:
        raw["imageAlt"] = alt


def load_catalog(path: Path) -> Catalog:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise StoreError(path, f"cannot read: {exc}") from exc
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise StoreError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise StoreError(path, f"expected a JSON array, got {type(data).__name__}")

    records = [item for item in data if isinstance(item, dict)]
    if len(records) != len(data):
        # Non-object entries would be dropped by a rewrite
        raise StoreError(path, "every catalog entry must be a JSON object")
    logger.info(f"Loaded {len(records)} deals from {path}")
    return Catalog(path=path, records=records)


def save_catalog(catalog: Catalog) -> None:
    """Rewrite the whole catalog: 2-space indent, trailing newline."""
    payload = orjson.dumps(catalog.records, option=orjson.OPT_INDENT_2) + b"\n"
    try:
        catalog.path.write_bytes(payload)
    except OSError as exc:
        raise StoreError(catalog.path, f"cannot write: {exc}") from exc
    logger.info(f"Wrote {len(catalog.records)} deals to {catalog.path}")
