"""Tests for committing staged cards to inventory."""

import json
from typing import Any

import httpx
import pytest
import respx

from cardintake.models.failure import FailureKind
from cardintake.models.line_item import LineItem
from cardintake.services.inventory_commit import (
    InventoryClient,
    InventoryCommitError,
    commit_ledger,
    expand_line_item,
)
from cardintake.services.staged_ledger import StagedLedger

INVENTORY_URL = "http://inventory.test/api"


class FakeInventory:
    def __init__(self, fail_on: int | None = None) -> None:
        self.fail_on = fail_on
        self.payloads: list[dict[str, Any]] = []

    async def add_item(self, payload: dict[str, Any]) -> dict[str, Any]:
        if self.fail_on is not None and len(self.payloads) == self.fail_on:
            raise InventoryCommitError("Failed to add item: HTTP 500 - boom")
        self.payloads.append(payload)
        return {"id": len(self.payloads), **payload}


class TestExpandLineItem:
    def test_one_payload_per_card(self) -> None:
        item = LineItem(card_name="Energy", barcode_id="ABC", quantity=3, line_id="x1")

        payloads = expand_line_item(item)

        assert len(payloads) == 3
        assert all(p["card_name"] == "Energy" for p in payloads)

    def test_only_first_payload_keeps_barcode(self) -> None:
        """A barcode identifies one physical card."""
        payloads = expand_line_item(LineItem(card_name="Energy", barcode_id="ABC", quantity=3))

        assert payloads[0]["barcode_id"] == "ABC"
        assert "barcode_id" not in payloads[1]
        assert "barcode_id" not in payloads[2]

    def test_ledger_fields_removed(self) -> None:
        payload = expand_line_item(LineItem(card_name="Pikachu", quantity=1, line_id="x1"))[0]

        assert "line_id" not in payload
        assert "quantity" not in payload

    def test_missing_quantity_is_one_card(self) -> None:
        assert len(expand_line_item(LineItem(card_name="Pikachu"))) == 1
        assert len(expand_line_item(LineItem(card_name="Pikachu", quantity="bad"))) == 1


class TestCommitLedger:
    async def test_posts_every_card_and_clears(self) -> None:
        ledger = StagedLedger()
        ledger.add(LineItem(card_name="Lugia V", barcode_id="12345678"))
        ledger.add(LineItem(card_name="Energy", quantity=2))
        inventory = FakeInventory()

        created = await commit_ledger(ledger, inventory)

        assert created == 3
        assert [p["card_name"] for p in inventory.payloads] == ["Lugia V", "Energy", "Energy"]
        assert len(ledger) == 0

    async def test_failure_keeps_ledger(self) -> None:
        ledger = StagedLedger()
        ledger.add(LineItem(card_name="Lugia V"))
        ledger.add(LineItem(card_name="Pikachu"))
        inventory = FakeInventory(fail_on=1)

        with pytest.raises(InventoryCommitError):
            await commit_ledger(ledger, inventory)

        assert len(ledger) == 2
        assert len(inventory.payloads) == 1

    async def test_empty_ledger(self) -> None:
        assert await commit_ledger(StagedLedger(), FakeInventory()) == 0


class TestInventoryClient:
    @respx.mock
    async def test_add_item(self) -> None:
        route = respx.post(f"{INVENTORY_URL}/inventory").mock(
            return_value=httpx.Response(201, json={"id": 42, "card_name": "Pikachu"})
        )

        result = await InventoryClient(INVENTORY_URL).add_item({"card_name": "Pikachu"})

        assert result["id"] == 42
        assert route.called
        assert json.loads(route.calls.last.request.content) == {"card_name": "Pikachu"}

    @respx.mock
    async def test_http_error(self) -> None:
        respx.post(f"{INVENTORY_URL}/inventory").mock(
            return_value=httpx.Response(500, text="boom")
        )

        with pytest.raises(InventoryCommitError, match="Failed to add item") as exc_info:
            await InventoryClient(INVENTORY_URL).add_item({"card_name": "Pikachu"})

        assert exc_info.value.kind is FailureKind.EXTERNAL_API_ERROR
        assert exc_info.value.status_code == 502

    @respx.mock
    async def test_network_error(self) -> None:
        respx.post(f"{INVENTORY_URL}/inventory").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(InventoryCommitError) as exc_info:
            await InventoryClient(INVENTORY_URL).add_item({})

        assert exc_info.value.kind is FailureKind.NETWORK_ERROR

    @respx.mock
    async def test_timeout(self) -> None:
        respx.post(f"{INVENTORY_URL}/inventory").mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(InventoryCommitError) as exc_info:
            await InventoryClient(INVENTORY_URL).add_item({})

        assert exc_info.value.kind is FailureKind.TIMEOUT

    @respx.mock
    async def test_invalid_json(self) -> None:
        respx.post(f"{INVENTORY_URL}/inventory").mock(
            return_value=httpx.Response(200, text="<html>")
        )

        with pytest.raises(InventoryCommitError, match="Invalid JSON"):
            await InventoryClient(INVENTORY_URL).add_item({})
