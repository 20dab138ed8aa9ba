"""
Commit a staged ledger to inventory.

Inventory holds one row per physical card, so a line item with quantity N
becomes N creation requests. A barcode identifies one physical card: only the
first request of an expanded line item carries it.
"""

import json
import logging
from typing import Any, Protocol

import httpx

from cardintake.config import settings
from cardintake.models.failure import FailureKind, KnownError
from cardintake.models.line_item import LineItem
from cardintake.services.staged_ledger import StagedLedger

logger = logging.getLogger(__name__)

# Ledger bookkeeping that inventory rows do not carry
_LEDGER_ONLY_FIELDS = ("line_id", "quantity")


class InventoryCommitError(KnownError):
    """Raised when an inventory creation request fails."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.EXTERNAL_API_ERROR):
        super().__init__(kind=kind, message=message, status_code=502)


class InventoryWriter(Protocol):
    async def add_item(self, payload: dict[str, Any]) -> dict[str, Any]: ...


class InventoryClient:
    """Client for the inventory persistence API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.inventory_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._client = client

    async def add_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create one inventory row.

        Args:
            payload: Inventory item fields

        Returns:
            The created row as returned by the API

        Raises:
            InventoryCommitError: On network error, non-2xx status, or a non-JSON body
        """
        url = f"{self.base_url}/inventory"
        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload)
        except httpx.TimeoutException as exc:
            raise InventoryCommitError(
                f"Timed out adding item: {exc}", FailureKind.TIMEOUT
            ) from exc
        except httpx.RequestError as exc:
            raise InventoryCommitError(
                f"Network error adding item: {exc}", FailureKind.NETWORK_ERROR
            ) from exc

        if not response.is_success:
            raise InventoryCommitError(
                f"Failed to add item: HTTP {response.status_code} - {response.text}"
            )

        try:
            result: dict[str, Any] = response.json()
        except json.JSONDecodeError as exc:
            raise InventoryCommitError(f"Invalid JSON response: {response.text}") from exc

        return result


def expand_line_item(item: LineItem) -> list[dict[str, Any]]:
    """
    Expand a line item into one inventory payload per physical card.

    A missing or zero quantity counts as one card.
    """
    base = item.to_dict()
    for name in _LEDGER_ONLY_FIELDS:
        base.pop(name, None)

    payloads = []
    for index in range(item.count() or 1):
        payload = dict(base)
        if index > 0:
            payload.pop("barcode_id", None)
        payloads.append(payload)
    return payloads


async def commit_ledger(ledger: StagedLedger, client: InventoryWriter) -> int:
    """
    Post every staged card to inventory, then clear the ledger.

    Args:
        ledger: Ledger to commit
        client: Inventory writer, e.g. InventoryClient

    Returns:
        Number of inventory rows created

    Raises:
        InventoryCommitError: On the first failed request; the ledger is left intact
    """
    created = 0
    for item in ledger:
        for payload in expand_line_item(item):
            try:
                await client.add_item(payload)
            except InventoryCommitError:
                logger.error(
                    "Inventory commit failed after %d rows at %s", created, item.card_name
                )
                raise
            created += 1

    logger.info("Committed %d cards from %d line items", created, len(ledger))
    ledger.clear()
    return created
