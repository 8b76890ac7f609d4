import logging

import httpx

from pdf_chooser.exceptions import InvalidResponseError, NetworkError, UpstreamError
from pdf_chooser.models import RawRecord

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "/api/hubspot-search"


class ProxyClient:
    """Client side of the aggregating search proxy."""

    def __init__(self, http_client: httpx.Client, *, endpoint: str = DEFAULT_ENDPOINT):
        self._http = http_client
        self.endpoint = endpoint

    def fetch_all(self, token: str, limit: int = 1000) -> list[RawRecord]:
        params = {"limit": str(limit), "token": token}
        logger.info("Loading all PDFs from proxy (limit=%d)", limit)
        try:
            response = self._http.get(
                self.endpoint,
                params=params,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc)) from exc

        if not response.is_success:
            raise UpstreamError(response.status_code, f"API Error {response.status_code}: {response.text}")

        try:
            results = response.json().get("results") or []
        except (ValueError, AttributeError) as exc:
            raise InvalidResponseError(f"Invalid response from proxy: {exc}") from exc
        logger.info("Loaded %d total PDFs", len(results))
        return results
