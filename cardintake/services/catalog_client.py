"""
Product catalog clients.

TCGSearchClient wraps the TCG product-search endpoint
(`GET ?q=&set=&number=&limit=` -> `{success, products}`); its `search`
method is the raw call the search cascade widens over.

ImageSearchClient wraps the card-image search, which can be slow enough that
it carries a hard timeout. A timed-out search reports FailureKind.TIMEOUT so
the UI can offer a retry instead of a generic error.
"""

import asyncio
import json
import logging
from typing import Any

import httpx

from cardintake.config import IMAGE_SEARCH_TIMEOUT_SECONDS, settings
from cardintake.models.failure import FailureKind
from cardintake.models.lookup import CardImage, ImageSearchResult, SearchResponse
from cardintake.models.tcg_product import TCGProduct
from cardintake.services.tcg_search import MIN_QUERY_LENGTH

logger = logging.getLogger(__name__)

USER_AGENT = "CardIntake/1.0"


async def _get_json(
    url: str,
    params: dict[str, str],
    client: httpx.AsyncClient | None,
    timeout: float,
) -> dict[str, Any]:
    """
    GET a JSON document.

    Raises:
        httpx.HTTPError: On transport failure or non-2xx status
        json.JSONDecodeError: On a non-JSON body
    """
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if client is not None:
        response = await client.get(url, params=params, headers=headers)
    else:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            response = await owned.get(url, params=params, headers=headers)
    response.raise_for_status()
    data: dict[str, Any] = response.json()
    return data


def _classify(exc: Exception) -> tuple[FailureKind, str]:
    if isinstance(exc, httpx.TimeoutException | TimeoutError):
        return FailureKind.TIMEOUT, "Search timed out"
    if isinstance(exc, httpx.HTTPStatusError):
        return FailureKind.EXTERNAL_API_ERROR, f"Search failed: HTTP {exc.response.status_code}"
    if isinstance(exc, json.JSONDecodeError):
        return FailureKind.EXTERNAL_API_ERROR, "Invalid JSON response from search"
    return FailureKind.NETWORK_ERROR, f"Search failed: {exc}"


class TCGSearchClient:
    """Client for the TCG product-search endpoint."""

    def __init__(
        self,
        search_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.search_url = search_url or settings.tcg_search_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client

    async def search(
        self,
        card_name: str,
        set_name: str = "",
        card_number: str = "",
        limit: int = 9,
    ) -> SearchResponse:
        """
        Run one product search.

        Args:
            card_name: Name fragment to match against catalog names
            set_name: Optional set name filter
            card_number: Optional card number filter
            limit: Max products to return

        Returns:
            SearchResponse; success=False with a failure kind on error
        """
        if not card_name or len(card_name.strip()) < MIN_QUERY_LENGTH:
            return SearchResponse(success=True)

        params = {"q": card_name, "limit": str(limit)}
        if set_name:
            params["set"] = set_name
        if card_number:
            params["number"] = card_number

        try:
            data = await _get_json(self.search_url, params, self._client, self.timeout)
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            kind, message = _classify(exc)
            logger.warning("TCG search for %r failed: %s", card_name, exc)
            return SearchResponse.failed(kind, message)

        if not data.get("success"):
            return SearchResponse.failed(
                FailureKind.EXTERNAL_API_ERROR,
                data.get("error") or "Failed to search TCG products",
            )

        products = [
            TCGProduct.from_api(p) for p in data.get("products") or [] if isinstance(p, dict)
        ]
        return SearchResponse(success=True, products=products)


class ImageSearchClient:
    """Client for the card-image search endpoint."""

    def __init__(
        self,
        search_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = IMAGE_SEARCH_TIMEOUT_SECONDS,
    ) -> None:
        self.search_url = search_url or settings.image_search_url
        self.timeout = timeout
        self._client = client

    async def search(
        self,
        card_name: str,
        set_name: str = "",
        game: str = "pokemon",
        card_number: str = "",
        limit: int = 6,
    ) -> ImageSearchResult:
        """
        Search for card images, aborting after the hard timeout.

        Returns:
            ImageSearchResult; a timeout is reported as FailureKind.TIMEOUT
        """
        if not card_name:
            return ImageSearchResult(success=True)

        params = {"card_name": card_name, "game": game or "pokemon", "limit": str(limit)}
        if set_name:
            params["set_name"] = set_name
        if card_number:
            params["card_number"] = card_number

        try:
            data = await asyncio.wait_for(
                _get_json(self.search_url, params, self._client, self.timeout),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.warning("Image search for %r timed out after %.0fs", card_name, self.timeout)
            return ImageSearchResult(
                success=False,
                error=f"Image search timed out after {self.timeout:.0f} seconds.",
                failure_kind=FailureKind.TIMEOUT,
            )
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            kind, message = _classify(exc)
            logger.warning("Image search for %r failed: %s", card_name, exc)
            return ImageSearchResult(success=False, error=message, failure_kind=kind)

        if not data.get("success"):
            return ImageSearchResult(
                success=False,
                error=data.get("error") or "Failed to search images",
                failure_kind=FailureKind.EXTERNAL_API_ERROR,
            )

        cards = [CardImage.from_api(c) for c in data.get("cards") or [] if isinstance(c, dict)]
        return ImageSearchResult(success=True, cards=cards)
