"""
Catalog updater: give every deal without an image a local, normalized one.

Per record: fetch page -> select candidate -> download (+ one fallback) ->
normalize -> write <images-dir>/<id>.webp -> fill image/imageAlt.
Each record runs inside its own failure boundary; the catalog is rewritten
once at the end, and only if something changed.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from catalog import Catalog, save_catalog, set_image
from config import EnrichConfig
from errors import EnrichError, NoCandidateError, OutputError
from fetcher import PageFetcher
from images import fetch_with_fallback
from models import DealRecord, FetchedImage
from normalize import normalize_image
from parser import parse_html
from selection import select_candidate

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed pause after each enriched record, to go easy on source sites."""

    def __init__(self, interval: float):
        self.interval = interval

    async def pause(self) -> None:
        if self.interval > 0:
            await asyncio.sleep(self.interval)


@dataclass
class RunSummary:
    """Counts for one sweep over the catalog."""

    total: int = 0
    already_set: int = 0
    ineligible: int = 0  # missing id or url
    attempted: int = 0
    enriched: int = 0
    skipped: int = 0  # no usable candidate
    failed: int = 0
    fallbacks: int = 0
    catalog_written: bool = False

    @property
    def changed(self) -> bool:
        return self.enriched > 0


def output_target(config: EnrichConfig, record_id: str) -> tuple[Path, str]:
    """(file path, catalog path) for a record. Rejects ids that are not plain file names."""
    if record_id in (".", "..") or "/" in record_id or "\\" in record_id or "\x00" in record_id:
        raise OutputError(f"id {record_id!r} cannot be used as a file name")
    return config.output_path(record_id), config.public_path(record_id)


async def enrich_record(
    raw: dict,
    deal: DealRecord,
    fetcher: PageFetcher,
    config: EnrichConfig,
) -> FetchedImage | None:
    """Run the pipeline for one deal. Returns the image used, None on a dry run.

    Raises EnrichError subclasses on failure; the record is untouched then.
    """
    file_path, public_path = output_target(config, deal.id)

    logger.info(f"-> {deal.id}: fetch {deal.url}")
    html = await fetcher.fetch_html(deal.url)
    doc = parse_html(html)

    selection = select_candidate(doc, deal.url)
    logger.info(f"  candidate ({selection.strategy}): {selection.url}")
    if config.dry_run:
        return None

    image = await fetch_with_fallback(
        fetcher,
        doc,
        deal.url,
        selection.url,
        min_area=config.min_pixel_area,
        require_valid=config.require_valid_image,
    )
    webp = normalize_image(image.data, size=config.output_size, quality=config.quality)

    try:
        file_path.write_bytes(webp)
    except OSError as exc:
        raise OutputError(f"cannot write {file_path}: {exc}") from exc

    set_image(raw, public_path, deal.alt_text)
    logger.info(f"  saved {public_path}" + (" (fallback)" if image.fallback_used else ""))
    return image


async def enrich_catalog(
    catalog: Catalog,
    fetcher: PageFetcher,
    config: EnrichConfig,
    rate_limiter: RateLimiter | None = None,
) -> RunSummary:
    """Sweep the catalog once. Only a store failure can abort the sweep."""
    if rate_limiter is None:
        rate_limiter = RateLimiter(config.delay)
    summary = RunSummary()

    if not config.dry_run:
        try:
            config.images_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"cannot create {config.images_dir}: {exc}") from exc

    for raw, deal in catalog.deals():
        summary.total += 1
        if deal.image:
            summary.already_set += 1
            continue
        if not deal.needs_image:
            summary.ineligible += 1
            continue
        if config.limit is not None and summary.attempted >= config.limit:
            continue

        summary.attempted += 1
        try:
            image = await enrich_record(raw, deal, fetcher, config)
        except NoCandidateError as exc:
            summary.skipped += 1
            logger.warning(f"! {deal.id}: {exc}")
            continue
        except EnrichError as exc:
            summary.failed += 1
            logger.error(f"x {deal.id}: {exc}")
            continue
        except Exception as exc:
            summary.failed += 1
            logger.error(f"x {deal.id}: unexpected {type(exc).__name__}: {exc}", exc_info=exc)
            continue

        if image is not None:
            summary.enriched += 1
            if image.fallback_used:
                summary.fallbacks += 1
            await rate_limiter.pause()

    if summary.changed:
        save_catalog(catalog)
        summary.catalog_written = True
        logger.info(f"Catalog updated with {summary.enriched} image path(s)")
    else:
        logger.info("No changes needed (all set or none found).")
    return summary
