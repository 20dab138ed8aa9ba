import math

import pytest

from cardintake.models.line_item import LineItem
from cardintake.services.staged_ledger import StagedLedger


@pytest.fixture
def ledger() -> StagedLedger:
    return StagedLedger()


class TestAdd:
    def test_assigns_line_id_and_default_quantity(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))

        assert staged is not None
        assert staged.line_id
        assert staged.quantity == 1
        assert len(ledger) == 1

    def test_does_not_mutate_input(self, ledger: StagedLedger) -> None:
        item = LineItem(card_name="Lugia V")

        ledger.add(item)

        assert item.line_id == ""
        assert item.quantity is None

    def test_accepts_mapping_and_ignores_unknown_keys(self, ledger: StagedLedger) -> None:
        staged = ledger.add({"card_name": "Pikachu", "purchase_price": "4.50", "color": "yellow"})

        assert staged is not None
        assert staged.card_name == "Pikachu"
        assert staged.purchase_price == "4.50"

    def test_keeps_given_quantity(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Energy", quantity=10))

        assert staged is not None
        assert staged.quantity == 10

    def test_duplicate_barcode_is_noop(self, ledger: StagedLedger) -> None:
        """Each barcode is one physical card, so a repeat scan changes nothing."""
        first = ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))

        assert ledger.add(LineItem(card_name="Other", barcode_id=" abc123 ")) is None

        assert len(ledger) == 1
        assert ledger.items[0] is first
        assert ledger.items[0].quantity == 1

    def test_items_without_barcode_never_collide(self, ledger: StagedLedger) -> None:
        ledger.add(LineItem(card_name="Energy"))
        ledger.add(LineItem(card_name="Energy"))

        assert len(ledger) == 2

    def test_line_ids_unique(self, ledger: StagedLedger) -> None:
        staged = [ledger.add(LineItem(card_name=f"Card {i}")) for i in range(50)]
        ids = {item.line_id for item in staged if item is not None}

        assert len(ids) == 50

    def test_rejects_non_items(self, ledger: StagedLedger) -> None:
        assert ledger.add("Lugia V") is None  # type: ignore[arg-type]
        assert len(ledger) == 0

    def test_preserves_insertion_order(self, ledger: StagedLedger) -> None:
        for name in ["Charizard", "Blastoise", "Venusaur"]:
            ledger.add(LineItem(card_name=name))

        assert [item.card_name for item in ledger] == ["Charizard", "Blastoise", "Venusaur"]


class TestUpdate:
    def test_merges_fields(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V", purchase_price=10))
        assert staged is not None

        assert ledger.update(staged.line_id, purchase_price=12.5, condition="LP")

        assert staged.purchase_price == 12.5
        assert staged.condition == "LP"

    def test_accepts_mapping(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V"))
        assert staged is not None

        assert ledger.update(staged.line_id, {"notes": "corner wear"})

        assert staged.notes == "corner wear"

    def test_unknown_line_is_noop(self, ledger: StagedLedger) -> None:
        assert not ledger.update("missing", card_name="X")

    def test_line_id_cannot_change(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V"))
        assert staged is not None
        line_id = staged.line_id

        ledger.update(line_id, line_id="hijacked", unknown="x")

        assert staged.line_id == line_id

    def test_rejects_barcode_already_staged(self, ledger: StagedLedger) -> None:
        ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))
        other = ledger.add(LineItem(card_name="Pikachu", barcode_id="XYZ789"))
        assert other is not None

        assert not ledger.update(other.line_id, barcode_id="abc123", card_name="Changed")

        assert other.barcode_id == "XYZ789"
        assert other.card_name == "Pikachu"

    def test_own_barcode_can_be_resent(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))
        assert staged is not None

        assert ledger.update(staged.line_id, barcode_id="ABC123", grade="10")

    def test_none_for_text_field_is_ignored(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))
        assert staged is not None

        assert ledger.update(staged.line_id, card_name=None, barcode_id=None, notes="ok")

        assert staged.card_name == "Lugia V"
        assert staged.barcode_id == "ABC123"
        assert staged.notes == "ok"


class TestRemoveAndClear:
    def test_remove(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V"))
        assert staged is not None

        assert ledger.remove(staged.line_id)
        assert len(ledger) == 0

    def test_remove_unknown(self, ledger: StagedLedger) -> None:
        ledger.add(LineItem(card_name="Lugia V"))

        assert not ledger.remove("missing")
        assert len(ledger) == 1

    def test_removed_barcode_can_be_staged_again(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))
        assert staged is not None
        ledger.remove(staged.line_id)

        assert ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123")) is not None

    def test_clear(self, ledger: StagedLedger) -> None:
        ledger.add(LineItem(card_name="A"))
        ledger.add(LineItem(card_name="B"))

        ledger.clear()

        assert len(ledger) == 0
        assert ledger.total_quantity == 0
        assert ledger.total_cost == 0

    def test_iteration_is_a_snapshot(self, ledger: StagedLedger) -> None:
        for name in ["A", "B", "C"]:
            ledger.add(LineItem(card_name=name))

        for item in ledger:
            ledger.remove(item.line_id)

        assert len(ledger) == 0


class TestQuantity:
    def test_increment(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Energy"))
        assert staged is not None

        assert ledger.increment(staged.line_id)
        assert ledger.increment(staged.line_id)

        assert staged.quantity == 3

    def test_decrement(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Energy", quantity=3))
        assert staged is not None

        assert ledger.decrement(staged.line_id)

        assert staged.quantity == 2

    def test_decrement_barcoded_item_at_one_removes(self, ledger: StagedLedger) -> None:
        staged = ledger.add(LineItem(card_name="Lugia V", barcode_id="ABC123"))
        assert staged is not None

        assert ledger.decrement(staged.line_id)

        assert len(ledger) == 0

    def test_decrement_unbarcoded_item_stops_at_one(self, ledger: StagedLedger) -> None:
        """Items without a barcode are only removed explicitly."""
        staged = ledger.add(LineItem(card_name="Energy"))
        assert staged is not None

        assert not ledger.decrement(staged.line_id)

        assert len(ledger) == 1
        assert staged.quantity == 1

    def test_unknown_line(self, ledger: StagedLedger) -> None:
        assert not ledger.increment("missing")
        assert not ledger.decrement("missing")


class TestTotals:
    def test_totals_recomputed_from_items(self, ledger: StagedLedger) -> None:
        ledger.add(LineItem(card_name="A", purchase_price=10, quantity=2))
        staged = ledger.add(LineItem(card_name="B", purchase_price="5.50"))
        assert staged is not None

        assert ledger.total_quantity == 3
        assert ledger.total_cost == pytest.approx(25.5)

        ledger.update(staged.line_id, purchase_price=7)
        assert ledger.total_cost == pytest.approx(27.0)

    @pytest.mark.parametrize("price", ["abc", None, "", math.nan, math.inf, True])
    def test_malformed_price_counts_as_zero(self, ledger: StagedLedger, price: object) -> None:
        ledger.add(LineItem(card_name="A", purchase_price=price, quantity=3))
        ledger.add(LineItem(card_name="B", purchase_price=2))

        assert ledger.total_cost == pytest.approx(2.0)
        assert ledger.total_quantity == 4

    def test_malformed_quantity_counts_as_zero(self, ledger: StagedLedger) -> None:
        ledger.add(LineItem(card_name="A", purchase_price=5, quantity="lots"))

        assert ledger.total_quantity == 0
        assert ledger.total_cost == 0

    def test_empty_ledger(self, ledger: StagedLedger) -> None:
        assert ledger.total_quantity == 0
        assert ledger.total_cost == 0
        assert ledger.items == []
