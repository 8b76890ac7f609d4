"""Cursor-walking aggregation over the HubSpot Files search API."""

import logging
from typing import Callable

import httpx
from pydantic import ValidationError

from pdf_chooser.exceptions import InvalidResponseError, NetworkError, UpstreamError
from pdf_chooser.models import RawRecord, RemotePage, SearchRequest

logger = logging.getLogger(__name__)

HUBSPOT_MAX_PAGE_SIZE = 100
SEARCH_PATH = "/files/v3/files/search"

FetchPage = Callable[[str | None, str | None, int], RemotePage]


def aggregate_search(
    fetch_page: FetchPage,
    *,
    query: str | None,
    limit: int,
    page_size: int = HUBSPOT_MAX_PAGE_SIZE,
) -> list[RawRecord]:
    """
    Collect up to ``limit`` records by following the upstream cursor.

    The walk stops once enough records are held, or when a page carries no
    next cursor or no items. Any UpstreamError raised by ``fetch_page``
    aborts the walk and propagates to the caller unchanged.
    """
    collected: list[RawRecord] = []
    cursor: str | None = None

    while len(collected) < limit:
        page = fetch_page(query, cursor, page_size)
        collected.extend(page.items)
        logger.info("Upstream returned %d files, total so far: %d", len(page.items), len(collected))

        if not page.next_cursor or not page.items:
            logger.info("No more pages, stopping pagination")
            break
        cursor = page.next_cursor

    logger.info("Total files collected: %d", len(collected))
    return collected[:limit]


class HubSpotFilesClient:
    def __init__(self, api_key: str, *, base_url: str, http_client: httpx.Client):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._http = http_client

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def fetch_page(self, query: str | None, cursor: str | None, page_size: int) -> RemotePage:
        params: dict[str, str | int] = {
            "limit": min(page_size, HUBSPOT_MAX_PAGE_SIZE),
            "extension": "pdf",
        }
        if query:
            params["q"] = query
        if cursor:
            params["after"] = cursor

        url = f"{self._base_url}{SEARCH_PATH}"
        logger.debug("Calling HubSpot search: %s params=%s", url, params)
        try:
            response = self._http.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc)) from exc

        if not response.is_success:
            logger.error("HubSpot API error: %s %s", response.status_code, response.text)
            raise UpstreamError(response.status_code, response.text)

        try:
            payload = response.json()
            after = ((payload.get("paging") or {}).get("next") or {}).get("after")
            return RemotePage(
                items=payload.get("results") or [],
                next_cursor=None if after is None else str(after),
            )
        except (ValueError, TypeError, AttributeError, ValidationError) as exc:
            logger.error("Unreadable HubSpot response: %s", response.text[:200])
            raise InvalidResponseError(f"Invalid response from HubSpot: {exc}") from exc

    def search(self, request: SearchRequest, page_size: int = HUBSPOT_MAX_PAGE_SIZE) -> list[RawRecord]:
        return aggregate_search(self.fetch_page, query=request.query, limit=request.limit, page_size=page_size)
