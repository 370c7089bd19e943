# File: barber_finder/pagination.py

import time
import logging
from dataclasses import dataclass
from typing import List, Optional

from .api_utils import request_text_search
from .config import (
    DEFAULT_EMPTY_PAGE_RETRY_DELAY_SECONDS,
    DEFAULT_MAX_EMPTY_PAGE_ATTEMPTS,
    DEFAULT_PAGE_TOKEN_DELAY_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

# --- Constants ---
MAX_PAGES_PER_POINT = 3


@dataclass(frozen=True)
class TilePage:
    hits: List[dict]
    next_page_token: Optional[str] = None


def fetch_tile_pages(
    query,
    point,
    api_key,
    max_pages=MAX_PAGES_PER_POINT,
    page_token_delay=DEFAULT_PAGE_TOKEN_DELAY_SECONDS,
    empty_retry_delay=DEFAULT_EMPTY_PAGE_RETRY_DELAY_SECONDS,
    max_empty_attempts=DEFAULT_MAX_EMPTY_PAGE_ATTEMPTS,
    timeout=DEFAULT_REQUEST_TIMEOUT_SECONDS,
    sleep=time.sleep,
    fetch_page=request_text_search,
):
    """
    Yields the pages of a text search biased to one grid point.

    Every request carries the point's circle as location bias. Pages after the
    first reuse the previous nextPageToken, always after waiting
    page_token_delay seconds. A token page that comes back empty counts as a
    stall: wait empty_retry_delay and ask again with the same token, giving up
    on the tile after max_empty_attempts consecutive stalls.

    Args:
        query (str): Text query sent as textQuery.
        point (GridPoint): Center and radius of the tile.
        api_key (str): Google Maps Platform key.
        sleep (callable): Blocking sleep, replaced in tests.
        fetch_page (callable): Page fetcher with request_text_search's signature.

    Yields:
        TilePage: Hits of each accepted page, in request order.

    Raises:
        UpstreamError: Propagated untouched from fetch_page.
    """
    page_token = None
    pages = 0
    empty_attempts = 0

    while pages < max_pages:
        if page_token:
            logger.info(f"Waiting {page_token_delay}s before using next_page_token (page {pages + 1}/{max_pages}).")
            sleep(page_token_delay)

        data = fetch_page(
            query,
            api_key,
            page_token=page_token,
            location_bias=point,
            timeout=timeout,
        )
        hits = data.get("places") or []
        next_page_token = data.get("nextPageToken")

        if not hits and page_token:
            empty_attempts += 1
            if empty_attempts >= max_empty_attempts:
                logger.warning(
                    f"Page token returned no results {empty_attempts} times in a row at "
                    f"({point.lat:.5f}, {point.lng:.5f}). Abandoning this tile."
                )
                return
            logger.warning(
                f"Empty page for a valid token (attempt {empty_attempts}/{max_empty_attempts}). "
                f"Retrying in {empty_retry_delay}s..."
            )
            sleep(empty_retry_delay)
            continue

        empty_attempts = 0
        pages += 1
        logger.info(f"Page {pages}: Found {len(hits)} results. next_page_token: {'Yes' if next_page_token else 'No'}")
        yield TilePage(hits=hits, next_page_token=next_page_token)

        if not next_page_token:
            return
        page_token = next_page_token

    logger.info(f"Reached max pages limit ({max_pages}) for this grid point.")
