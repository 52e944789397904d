"""
Selection policy: fold a strategy chain into one image URL per page.
"""

import logging
from dataclasses import dataclass

from errors import NoCandidateError
from extractors import GENERIC_CHAIN, MARKETPLACE_CHAIN, Strategy
from parser import ParsedDocument
from urls import absolutize, is_fetchable_candidate, is_known_marketplace_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    url: str  # absolute, fetchable
    strategy: str  # name of the strategy that produced it


def chain_for(page_url: str) -> tuple[Strategy, ...]:
    """Marketplace pages get their landmark extractor first."""
    if is_known_marketplace_url(page_url):
        return MARKETPLACE_CHAIN
    return GENERIC_CHAIN


def select_candidate(
    doc: ParsedDocument,
    page_url: str,
    chain: tuple[Strategy, ...] | None = None,
) -> Selection:
    """Take the first strategy that finds anything, absolutized against page_url.

    Raises NoCandidateError when nothing was found or the winner is unusable
    (inline data or a tracking pixel). Later strategies are not consulted in
    that case.
    """
    if chain is None:
        chain = chain_for(page_url)

    for strategy in chain:
        raw = strategy.extract(doc, page_url)
        if not raw:
            continue
        logger.debug(f"  {strategy.name} found {raw}")
        url = absolutize(raw, page_url)
        if not is_fetchable_candidate(url):
            raise NoCandidateError(page_url, url or raw)
        return Selection(url=url, strategy=strategy.name)

    raise NoCandidateError(page_url)
