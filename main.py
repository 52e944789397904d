"""
Deal image enrichment entry point.

For every deal in the catalog without an image: fetch its page, pick a
product image, download and normalize it to an 800x800 WebP under the
images directory, and write the local path back into the catalog.

    python main.py --catalog src/data/deals.json --images-dir public/images
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from catalog import load_catalog
from config import DEFAULT_CATALOG_PATH, DEFAULT_IMAGES_DIR, IMAGE_URL_PREFIX, REQUEST_DELAY, REQUEST_TIMEOUT, EnrichConfig
from errors import EnrichError
from fetcher import PageFetcher
from updater import RunSummary, enrich_catalog

logger = logging.getLogger(__name__)


async def run(config: EnrichConfig) -> RunSummary:
    """Load the catalog, sweep it once, save it if anything changed."""
    catalog = load_catalog(config.catalog_path)
    async with PageFetcher(timeout=config.timeout) as fetcher:
        return await enrich_catalog(catalog, fetcher, config)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fetch-deal-images",
        description="Fetch, normalize and store a product image for every deal that lacks one.",
    )
    parser.add_argument("--catalog", type=Path, default=DEFAULT_CATALOG_PATH, help="Deals JSON file")
    parser.add_argument("--images-dir", type=Path, default=DEFAULT_IMAGES_DIR, help="Where <id>.webp files go")
    parser.add_argument(
        "--url-prefix",
        default=IMAGE_URL_PREFIX,
        help="Public path prefix written to each deal's image field",
    )
    parser.add_argument("--delay", type=float, default=REQUEST_DELAY, help="Seconds to pause after each saved image")
    parser.add_argument("--timeout", type=float, default=REQUEST_TIMEOUT, help="Per-request timeout in seconds")
    parser.add_argument("--limit", type=int, default=None, help="Process at most N deals this run")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report the candidate chosen for each deal; download and write nothing",
    )
    parser.add_argument(
        "--strict-images",
        action="store_true",
        help="Fail a deal when its image is still tiny or undecodable after the fallback",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")
    return parser


def config_from_args(args: argparse.Namespace) -> EnrichConfig:
    return EnrichConfig(
        catalog_path=args.catalog,
        images_dir=args.images_dir,
        url_prefix=args.url_prefix,
        delay=args.delay,
        timeout=args.timeout,
        limit=args.limit,
        dry_run=args.dry_run,
        require_valid_image=args.strict_images,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Per-request lines from httpx are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    logger.info("fetch-deal-images starting")
    t0 = time.monotonic()
    try:
        summary = asyncio.run(run(config))
    except EnrichError as exc:
        logger.error(f"Fatal: {exc}")
        return 1
    except Exception as exc:
        logger.error(f"Fatal: {type(exc).__name__}: {exc}", exc_info=exc)
        return 1

    logger.info(
        f"Done in {time.monotonic() - t0:.1f}s: "
        f"{summary.enriched} enriched, {summary.skipped} skipped, {summary.failed} failed, "
        f"{summary.already_set} already set, {summary.ineligible} missing id/url"
        f" | catalog {'rewritten' if summary.catalog_written else 'unchanged'}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
