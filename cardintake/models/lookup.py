"""
Status objects returned by network-backed lookups.

A lookup never raises for an expected failure. Callers branch on `success`
and, when it is False, on `failure_kind` to decide whether to offer a retry.
"""

from dataclasses import dataclass, field
from typing import Any

from cardintake.models.card_identity import ParsedCardIdentity, RawPSARecord
from cardintake.models.failure import FailureKind, is_retryable
from cardintake.models.tcg_product import TCGProduct


@dataclass(frozen=True, slots=True)
class SearchResponse:
    """One raw call to the product-search service."""

    success: bool
    products: list[TCGProduct] = field(default_factory=list)
    error: str | None = None
    failure_kind: FailureKind | None = None

    @property
    def has_products(self) -> bool:
        return self.success and len(self.products) > 0

    @classmethod
    def failed(cls, kind: FailureKind, error: str) -> "SearchResponse":
        return cls(success=False, error=error, failure_kind=kind)


@dataclass(frozen=True, slots=True)
class PSAFetchResult:
    """Outcome of fetching a certificate from PSA, before parsing."""

    success: bool
    record: RawPSARecord | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None


@dataclass(frozen=True, slots=True)
class LookupResult:
    """
    Outcome of a certificate lookup, parsed and ready to fill an intake form.

    Attributes:
        success: True when PSA returned a record
        identity: Parsed card identity (present on success)
        record: Raw PSA record (present on success)
        error: Field-scoped message for the barcode input (present on failure)
        failure_kind: NOT_FOUND vs TIMEOUT/NETWORK_ERROR etc.
    """

    success: bool
    identity: ParsedCardIdentity | None = None
    record: RawPSARecord | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None

    @property
    def retryable(self) -> bool:
        return not self.success and is_retryable(self.failure_kind)


@dataclass(frozen=True, slots=True)
class CardImage:
    """An image candidate from the card-image search."""

    name: str
    image_url: str
    set_name: str = ""
    number: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CardImage":
        return cls(
            name=data.get("name") or "",
            image_url=data.get("imageUrl") or "",
            set_name=data.get("set") or data.get("setName") or "",
            number=data.get("number") or "",
        )


@dataclass(frozen=True, slots=True)
class ImageSearchResult:
    """Outcome of a card-image search."""

    success: bool
    cards: list[CardImage] = field(default_factory=list)
    error: str | None = None
    failure_kind: FailureKind | None = None
