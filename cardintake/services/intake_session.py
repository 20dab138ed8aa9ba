"""
Intake session: one identification form feeding one staged ledger.

Wires the barcode field to debounced certificate lookups and the name/set/
number fields to debounced product searches. A successful cert lookup fills
the form and immediately searches the catalog with the lexical set name,
since the catalog does not index One Piece sets by their codes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace

from cardintake.models.line_item import LineItem
from cardintake.models.lookup import LookupResult, PSAFetchResult
from cardintake.models.tcg_product import TCGProduct
from cardintake.services.intake_form import (
    IntakeForm,
    apply_psa_identity,
    apply_tcg_product,
    form_to_line_item,
    is_duplicate_barcode,
    with_barcode,
)
from cardintake.services.lookup_coordinator import (
    PSALookupCoordinator,
    ProductSearchCoordinator,
)
from cardintake.services.staged_ledger import StagedLedger
from cardintake.services.tcg_search import MIN_QUERY_LENGTH, RawSearch

logger = logging.getLogger(__name__)

SEARCH_FIELDS = frozenset({"card_name", "set_name", "card_number"})


class IntakeSession:
    """
    Identification form plus staged ledger for one purchase.

    Args:
        psa_fetch: Certificate fetch, e.g. PSAClient.fetch_cert
        raw_search: Product search, e.g. TCGSearchClient.search
        ledger: Ledger to stage into; a fresh one by default
        inventory_barcodes: Barcodes already in inventory, for duplicate checks
    """

    def __init__(
        self,
        psa_fetch: Callable[[str], Awaitable[PSAFetchResult]],
        raw_search: RawSearch,
        ledger: StagedLedger | None = None,
        inventory_barcodes: Iterable[str] = (),
        *,
        psa_delay: float | None = None,
        search_delay: float | None = None,
    ) -> None:
        self.form = IntakeForm()
        self.ledger = ledger if ledger is not None else StagedLedger()
        self.inventory_barcodes = set(inventory_barcodes)
        self.selected_product: TCGProduct | None = None
        self._pre_selection: IntakeForm | None = None

        psa_kwargs = {} if psa_delay is None else {"delay": psa_delay}
        search_kwargs = {} if search_delay is None else {"delay": search_delay}
        self.psa = PSALookupCoordinator(psa_fetch, on_result=self._on_psa_result, **psa_kwargs)
        self.search = ProductSearchCoordinator(raw_search, **search_kwargs)

    @property
    def products(self) -> list[TCGProduct]:
        return self.search.products

    @property
    def is_duplicate_barcode(self) -> bool:
        return is_duplicate_barcode(self.form.barcode_id, self.inventory_barcodes, self.ledger)

    def set_barcode(self, barcode: str) -> asyncio.Task[LookupResult | None] | None:
        self.form = with_barcode(self.form, barcode)
        return self.psa.on_barcode_change(barcode)

    def set_field(self, name: str, value: str) -> asyncio.Task[list[TCGProduct]] | None:
        """Set a form field; name/set/number edits schedule a product search."""
        if name == "barcode_id":
            self.set_barcode(value)
            return None
        self.form = replace(self.form, **{name: value})
        if name not in SEARCH_FIELDS:
            return None
        return self.search.on_fields_change(
            self.form.card_name, self.form.set_name, self.form.card_number
        )

    def _on_psa_result(self, result: LookupResult) -> None:
        if not result.success or result.identity is None:
            return
        identity = result.identity
        cert = result.record.cert if result.record else self.form.barcode_id
        self.form = apply_psa_identity(self.form, identity, cert)

        if len(identity.card_name.strip()) >= MIN_QUERY_LENGTH:
            self.search.search_now(
                identity.card_name,
                identity.tcg_set_name or identity.set_name,
                identity.card_number,
            )

    def select_product(self, product: TCGProduct) -> None:
        """Apply a catalog product, remembering the form for deselect."""
        self._pre_selection = replace(self.form)
        self.selected_product = product
        self.form = apply_tcg_product(self.form, product)
        self.search.reset()

    def deselect_product(self) -> None:
        """Undo the last product selection."""
        if self._pre_selection is not None:
            self.form = self._pre_selection
        self._pre_selection = None
        self.selected_product = None

    def stage(self) -> LineItem | None:
        """
        Stage the current form and reset it for the next card.

        Returns:
            The staged item, or None when the form has no card name or its
            barcode is already in inventory or staged
        """
        if self.form.barcode_id.strip() and self.is_duplicate_barcode:
            logger.info("Barcode %s already exists, not staging", self.form.barcode_id)
            return None
        item = form_to_line_item(self.form)
        if item is None:
            return None

        staged = self.ledger.add(item)
        self.reset_form()
        return staged

    def reset_form(self) -> None:
        self.form = IntakeForm()
        self.selected_product = None
        self._pre_selection = None
        self.psa.reset()
        self.search.reset()
