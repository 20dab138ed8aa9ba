"""Identify a card from its PSA certification number.

Fetches the certificate, prints the parsed identity, then prints the TCG
products the search cascade matches for it.

Usage:
    python -m cardintake.jobs.identify_cert 12345678
    python -m cardintake.jobs.identify_cert 12345678 --limit 3
"""

import argparse
import asyncio
import logging
import sys

from cardintake.config import settings
from cardintake.models.lookup import LookupResult
from cardintake.models.tcg_product import TCGProduct
from cardintake.services.catalog_client import TCGSearchClient
from cardintake.services.lookup_coordinator import to_lookup_result
from cardintake.services.psa_client import PSAClient
from cardintake.services.tcg_search import search_products

logger = logging.getLogger(__name__)


async def identify_cert(
    cert_number: str,
    limit: int,
    psa: PSAClient | None = None,
    tcg: TCGSearchClient | None = None,
) -> tuple[LookupResult, list[TCGProduct]]:
    """
    Look up a cert and search the catalog for the card it identifies.

    Args:
        cert_number: PSA certification number
        limit: Max TCG products to return
        psa: PSA client (default: configured from settings)
        tcg: TCG search client (default: configured from settings)

    Returns:
        The lookup result and matching products (empty when the lookup failed)
    """
    psa = psa or PSAClient()
    tcg = tcg or TCGSearchClient()

    result = to_lookup_result(await psa.fetch_cert(cert_number))
    if not result.success or result.identity is None:
        return result, []

    identity = result.identity
    products = await search_products(
        tcg.search,
        identity.card_name,
        identity.tcg_set_name or identity.set_name,
        identity.card_number,
        limit,
    )
    logger.info("Found %d TCG matches for %s", len(products), identity.card_name)
    return result, products


def format_report(result: LookupResult, products: list[TCGProduct]) -> str:
    if not result.success or result.identity is None:
        kind = result.failure_kind.value if result.failure_kind else "unknown"
        return f"Lookup failed ({kind}): {result.error}"

    identity = result.identity
    lines = [
        f"Card:   {identity.card_name}",
        f"Number: {identity.card_number or '-'}",
        f"Set:    {identity.set_name or '-'}",
        f"Game:   {identity.game.value if identity.game else '-'}",
        f"Grade:  {identity.numeric_grade or '-'}",
        "",
        f"TCG matches ({len(products)}):",
    ]
    for product in products:
        number = f" #{product.card_number}" if product.card_number else ""
        lines.append(f"  [{product.product_id}] {product.name}{number} - {product.set_name}")
    return "\n".join(lines)


def main() -> None:
    """CLI entrypoint for cert identification."""
    parser = argparse.ArgumentParser(description="Identify a card from a PSA cert number")
    parser.add_argument("cert_number", help="PSA certification number (7-9 digits)")
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.tcg_search_limit,
        help="Max TCG products to show",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    result, products = asyncio.run(identify_cert(args.cert_number, args.limit))
    print(format_report(result, products))
    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
