"""
Trade session.

A trade stages cards received from the customer (trade-ins) against cards
given from inventory (trade-outs). Trade-ins live in a StagedLedger whose
purchase_price is the trade value offered and whose front_label_price is the
card's market value.

Trade value = card value x trade percentage / 100, unless overridden.
The difference between trade-in value and trade-out total decides who pays
cash: positive means cash to the customer, negative means cash from them.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from cardintake.config import settings
from cardintake.models.line_item import LineItem, coerce_number
from cardintake.services.staged_ledger import StagedLedger


@dataclass(frozen=True, slots=True)
class TradeOutItem:
    """An inventory card given to the customer."""

    inventory_id: int | str
    card_name: str = ""
    set_name: str = ""
    card_value: float = 0.0
    image_url: str = ""
    condition: str = ""
    card_type: str = "raw"
    grade: str = ""
    barcode_id: str = ""

    @classmethod
    def from_inventory(cls, item: Mapping[str, Any]) -> "TradeOutItem":
        """Build from an inventory row; card value is the front label price."""
        return cls(
            inventory_id=item.get("id", ""),
            card_name=item.get("card_name") or "",
            set_name=item.get("set_name") or "",
            card_value=coerce_number(item.get("front_label_price")),
            image_url=item.get("image_url") or "",
            condition=item.get("condition") or "",
            card_type=item.get("card_type") or "raw",
            grade=item.get("grade") or "",
            barcode_id=item.get("barcode_id") or "",
        )


@dataclass(frozen=True, slots=True)
class TradeSummary:
    """Derived totals for a trade."""

    trade_in_total: float
    trade_in_value: float
    trade_out_total: float
    difference: float
    cash_to_customer: float
    cash_from_customer: float
    average_trade_percentage: float


def compute_trade_value(
    card_value: Any,
    trade_percentage: Any = None,
    override: Any = None,
) -> float:
    """
    Trade value offered for a card.

    An override that is not None or "" wins. Otherwise the percentage
    applies, falling back to the default when missing or zero.
    """
    if override is not None and override != "":
        return coerce_number(override)
    percentage = coerce_number(trade_percentage) or settings.default_trade_percentage
    return coerce_number(card_value) * percentage / 100


@dataclass
class TradeSession:
    """Trade-ins and trade-outs for one customer trade."""

    trade_ins: StagedLedger = field(default_factory=StagedLedger)
    trade_outs: list[TradeOutItem] = field(default_factory=list)

    def add_trade_in(
        self,
        item: LineItem | Mapping[str, Any],
        card_value: Any,
        trade_percentage: Any = None,
        trade_value_override: Any = None,
    ) -> LineItem | None:
        """
        Stage a card received from the customer.

        Returns:
            The staged item, or None when the name or value is missing or the
            barcode is already staged
        """
        fields = item.to_dict() if isinstance(item, LineItem) else dict(item)
        value = coerce_number(card_value)
        if not str(fields.get("card_name") or "").strip() or value <= 0:
            return None

        percentage = coerce_number(trade_percentage) or settings.default_trade_percentage
        fields.update(
            front_label_price=value,
            trade_percentage=percentage,
            purchase_price=compute_trade_value(value, percentage, trade_value_override),
        )
        return self.trade_ins.add(fields)

    def set_trade_value(self, line_id: str, trade_value: Any) -> bool:
        """Override the trade value of a staged trade-in."""
        return self.trade_ins.update(line_id, purchase_price=coerce_number(trade_value))

    def remove_trade_in(self, line_id: str) -> bool:
        return self.trade_ins.remove(line_id)

    def add_trade_out(
        self, inventory_item: Mapping[str, Any] | TradeOutItem
    ) -> TradeOutItem | None:
        """Add an inventory card to give out; a card already added is ignored."""
        item = (
            inventory_item
            if isinstance(inventory_item, TradeOutItem)
            else TradeOutItem.from_inventory(inventory_item)
        )
        if any(existing.inventory_id == item.inventory_id for existing in self.trade_outs):
            return None
        self.trade_outs.append(item)
        return item

    def remove_trade_out(self, inventory_id: int | str) -> bool:
        before = len(self.trade_outs)
        self.trade_outs = [i for i in self.trade_outs if i.inventory_id != inventory_id]
        return len(self.trade_outs) != before

    def is_empty(self) -> bool:
        return len(self.trade_ins) == 0 and not self.trade_outs

    def summary(self) -> TradeSummary:
        trade_in_total = sum(
            coerce_number(item.front_label_price) * item.count() for item in self.trade_ins
        )
        trade_in_value = self.trade_ins.total_cost
        trade_out_total = sum(item.card_value for item in self.trade_outs)
        difference = trade_in_value - trade_out_total

        average = trade_in_value / trade_in_total * 100 if trade_in_total > 0 else 0.0

        return TradeSummary(
            trade_in_total=round(trade_in_total, 2),
            trade_in_value=round(trade_in_value, 2),
            trade_out_total=round(trade_out_total, 2),
            difference=round(difference, 2),
            cash_to_customer=round(max(difference, 0.0), 2),
            cash_from_customer=round(max(-difference, 0.0), 2),
            average_trade_percentage=round(average, 1),
        )

    def to_payload(self) -> dict[str, Any]:
        """Request body for recording the trade."""
        summary = self.summary()
        return {
            "trade_in_items": [item.to_dict() for item in self.trade_ins],
            "trade_out_items": [asdict(item) for item in self.trade_outs],
            "cash_to_customer": summary.cash_to_customer,
            "cash_from_customer": summary.cash_from_customer,
        }

    def clear(self) -> None:
        self.trade_ins.clear()
        self.trade_outs = []
