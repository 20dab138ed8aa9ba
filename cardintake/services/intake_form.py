"""
Intake form merge rules.

How a parsed PSA identity or a selected catalog product fills the intake
form. Graded cards trust the certificate: a product selection only adds the
image, product id, and (if unset) the game. Raw cards take name, set, number,
and game from the product.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from cardintake.models.card_identity import ParsedCardIdentity
from cardintake.models.line_item import LineItem, coerce_number
from cardintake.models.tcg_product import TCGProduct
from cardintake.parsers.normalizer import clean_card_name, clean_set_name, to_title_case
from cardintake.parsers.psa_record import is_psa_cert_number
from cardintake.services.game_resolver import detect_game_from_category_id
from cardintake.services.staged_ledger import StagedLedger, normalize_barcode

DEFAULT_CONDITION = "NM"


@dataclass(slots=True)
class IntakeForm:
    """Fields of the card identification form, as typed or auto-filled."""

    barcode_id: str = ""
    card_name: str = ""
    set_name: str = ""
    card_number: str = ""
    game: str = ""
    card_type: str = "raw"
    condition: str = ""
    grade: str = ""
    grade_qualifier: str = ""
    purchase_price: Any = ""
    front_label_price: Any = ""
    image_url: str = ""
    cert_number: str = ""
    notes: str = ""
    tcg_product_id: int | str | None = None

    @property
    def is_graded(self) -> bool:
        return self.card_type != "raw"


def with_barcode(form: IntakeForm, barcode: str) -> IntakeForm:
    """Set the barcode; a cert-shaped barcode on a raw card switches it to PSA."""
    updated = replace(form, barcode_id=barcode)
    if is_psa_cert_number(barcode) and updated.card_type == "raw":
        updated.card_type = "psa"
    return updated


def apply_psa_identity(
    form: IntakeForm, identity: ParsedCardIdentity, cert_number: str
) -> IntakeForm:
    """Fill the form from a certificate; empty identity fields keep the typed values."""
    return replace(
        form,
        card_type="psa",
        cert_number=cert_number,
        game=identity.game.value if identity.game else form.game,
        card_name=identity.card_name or form.card_name,
        set_name=identity.set_name or form.set_name,
        card_number=identity.card_number or form.card_number,
        grade=identity.numeric_grade or form.grade,
    )


def apply_tcg_product(form: IntakeForm, product: TCGProduct) -> IntakeForm:
    """Fill the form from a selected catalog product."""
    game = form.game or detect_game_from_category_id(product.category_id).value
    image_url = product.image_url or form.image_url

    if form.is_graded:
        return replace(form, image_url=image_url, tcg_product_id=product.product_id, game=game)

    return replace(
        form,
        image_url=image_url,
        tcg_product_id=product.product_id,
        card_name=to_title_case(clean_card_name(product.clean_name or product.name)),
        set_name=to_title_case(clean_set_name(product.set_name)),
        card_number=product.card_number or form.card_number,
        game=game,
        condition=form.condition or DEFAULT_CONDITION,
    )


def condition_or_grade(item: LineItem | IntakeForm | None) -> str:
    """
    Display label for a card's condition or grade.

    Examples:
        raw, condition "LP" -> "LP"; raw, no condition -> "NM"
        psa, grade "10" -> "PSA 10"; bgs, grade "9.5", qualifier "OC" -> "BGS 9.5OC"
    """
    if item is None:
        return ""
    if item.card_type == "raw":
        return item.condition or DEFAULT_CONDITION
    grade = f"{item.grade or ''}{item.grade_qualifier or ''}"
    return f"{(item.card_type or '').upper()} {grade}".strip()


def is_duplicate_barcode(
    barcode: str | None,
    inventory_barcodes: Iterable[str | None],
    ledger: StagedLedger,
) -> bool:
    """Check a barcode against existing inventory and the staged ledger."""
    key = normalize_barcode(barcode)
    if not key:
        return False
    if any(normalize_barcode(existing) == key for existing in inventory_barcodes):
        return True
    return ledger.has_barcode(key)


def form_to_line_item(form: IntakeForm) -> LineItem | None:
    """Convert a completed form to a line item, or None without a card name."""
    if not form.card_name.strip():
        return None
    front_label_price = coerce_number(form.front_label_price)
    return LineItem(
        barcode_id=form.barcode_id.strip(),
        card_name=form.card_name.strip(),
        set_name=form.set_name,
        card_number=form.card_number,
        game=form.game,
        card_type=form.card_type,
        condition=form.condition,
        grade=form.grade,
        grade_qualifier=form.grade_qualifier,
        purchase_price=coerce_number(form.purchase_price),
        front_label_price=front_label_price or None,
        quantity=1,
        image_url=form.image_url,
        cert_number=form.cert_number,
        tcg_product_id=form.tcg_product_id,
        notes=form.notes,
    )
