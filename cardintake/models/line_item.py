import math
from dataclasses import asdict, dataclass, fields
from typing import Any

# Card types a line item can carry; anything but "raw" is a graded slab
CARD_TYPES = frozenset({"raw", "psa", "bgs", "cgc"})


def coerce_number(value: Any) -> float:
    """
    Coerce a user-entered numeric field to float.

    Malformed, empty, and non-finite values count as zero.
    """
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def coerce_quantity(value: Any) -> int:
    """Coerce a quantity field to a non-negative int, malformed values count as zero."""
    return max(int(coerce_number(value)), 0)


@dataclass(slots=True)
class LineItem:
    """
    A staged purchase or trade entry, not yet committed to inventory.

    `line_id` is assigned by the ledger and never reused. `barcode_id` is the
    business identifier printed on the card's label and may be empty.
    """

    card_name: str = ""
    barcode_id: str = ""
    set_name: str = ""
    card_number: str = ""
    game: str = ""
    card_type: str = "raw"
    condition: str = ""
    grade: str = ""
    grade_qualifier: str = ""
    purchase_price: Any = 0
    front_label_price: Any = None
    quantity: Any = None
    image_url: str = ""
    cert_number: str = ""
    tcg_product_id: int | str | None = None
    notes: str = ""
    # Trade-ins only: share of card value offered in trade
    trade_percentage: Any = None
    line_id: str = ""

    @property
    def is_graded(self) -> bool:
        return self.card_type != "raw"

    def price(self) -> float:
        return coerce_number(self.purchase_price)

    def count(self) -> int:
        return coerce_quantity(self.quantity)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


LINE_ITEM_FIELDS = frozenset(f.name for f in fields(LineItem))

# Text fields that must never hold None
LINE_ITEM_TEXT_FIELDS = frozenset(f.name for f in fields(LineItem) if f.type is str)
