"""
TCG match search orchestrator.

Widens a product search step by step until something matches:

1. name, set, number as given
2. punctuation-free name (One Piece catalogs write "MonkeyDLuffy"), same set
3. set dropped (graded-card set names often disagree with the catalog),
   first with the name as given, then with the punctuation-free name

The first step that returns products wins; later steps are never attempted.
This is a widening search, not a ranked merge, so an early weak match can
shadow a better later one.
"""

import logging
from collections.abc import Awaitable, Callable

from cardintake.models.lookup import SearchResponse
from cardintake.models.tcg_product import TCGProduct
from cardintake.parsers.normalizer import clean_for_card_lookup

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 9

# Queries shorter than this never reach the search service
MIN_QUERY_LENGTH = 2

RawSearch = Callable[[str, str, str, int], Awaitable[SearchResponse]]


def _lookup_variant(card_name: str) -> str | None:
    """Punctuation-free name to retry with, or None when it would not differ."""
    if "." not in card_name and " " not in card_name:
        return None
    cleaned = clean_for_card_lookup(card_name)
    return cleaned if cleaned != card_name else None


async def search_with_fallback(
    raw_search: RawSearch,
    card_name: str,
    set_name: str = "",
    card_number: str = "",
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> SearchResponse:
    """
    Run the widening search cascade and return the last attempt's response.

    Args:
        raw_search: Product-search call (name, set, number, limit)
        card_name: Card name to search for
        set_name: Set name filter, may be empty
        card_number: Card number filter, may be empty
        limit: Max products per attempt

    Returns:
        The first response with products, otherwise the final attempt's response
    """
    if not card_name or len(card_name.strip()) < MIN_QUERY_LENGTH:
        return SearchResponse(success=True)

    set_name = set_name or ""
    card_number = card_number or ""
    lookup_name = _lookup_variant(card_name)

    attempts: list[tuple[str, str]] = [(card_name, set_name)]
    if lookup_name:
        attempts.append((lookup_name, set_name))
    if set_name:
        attempts.append((card_name, ""))
        if lookup_name:
            attempts.append((lookup_name, ""))

    response = SearchResponse(success=True)
    for step, (name, set_filter) in enumerate(attempts, start=1):
        response = await raw_search(name, set_filter, card_number, limit)
        logger.debug(
            "TCG search step %d name=%r set=%r number=%r -> %d products",
            step,
            name,
            set_filter,
            card_number,
            len(response.products),
        )
        if response.has_products:
            return response

    return response


async def search_products(
    raw_search: RawSearch,
    card_name: str,
    set_name: str = "",
    card_number: str = "",
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[TCGProduct]:
    """
    Find catalog products matching a card, widening the search as needed.

    An empty list is a normal outcome, not a failure.
    """
    response = await search_with_fallback(raw_search, card_name, set_name, card_number, limit)
    if not response.success:
        return []
    return list(response.products)
