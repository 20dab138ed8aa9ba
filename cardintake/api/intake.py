"""
Intake API endpoints.

PSA certificate identification, TCG product and card-image search, and one
staged purchase ledger per session id. Ledgers live in process memory and are
lost on restart; nothing reaches inventory until a session is committed.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from cardintake.config import settings
from cardintake.models.card_identity import ParsedCardIdentity, RawPSARecord
from cardintake.models.failure import ApiResponse, FailureKind
from cardintake.models.line_item import LineItem
from cardintake.models.lookup import CardImage
from cardintake.models.tcg_product import TCGProduct
from cardintake.services.catalog_client import ImageSearchClient, TCGSearchClient
from cardintake.services.inventory_commit import (
    InventoryClient,
    InventoryCommitError,
    commit_ledger,
)
from cardintake.services.lookup_coordinator import to_lookup_result
from cardintake.services.psa_client import PSAClient
from cardintake.services.staged_ledger import StagedLedger
from cardintake.services.tcg_search import search_with_fallback

router = APIRouter(tags=["intake"])

_FAILURE_STATUS = {
    FailureKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    FailureKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def _failure_status(kind: FailureKind | None) -> int:
    if kind is None:
        return status.HTTP_502_BAD_GATEWAY
    return _FAILURE_STATUS.get(kind, status.HTTP_502_BAD_GATEWAY)


# =============================================================================
# DEPENDENCIES
# =============================================================================


class LedgerStore:
    """
    Staged ledgers keyed by session id.

    Only staging a card creates a ledger; reads of an unknown session see an
    empty ledger that is not stored. A ledger left empty is dropped.
    """

    def __init__(self) -> None:
        self._ledgers: dict[str, StagedLedger] = {}

    def __len__(self) -> int:
        return len(self._ledgers)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._ledgers

    def get(self, session_id: str) -> StagedLedger:
        ledger = self._ledgers.get(session_id)
        return ledger if ledger is not None else StagedLedger()

    def open(self, session_id: str) -> StagedLedger:
        return self._ledgers.setdefault(session_id, StagedLedger())

    def release_if_empty(self, session_id: str) -> None:
        ledger = self._ledgers.get(session_id)
        if ledger is not None and len(ledger) == 0:
            del self._ledgers[session_id]

    def discard(self, session_id: str) -> None:
        self._ledgers.pop(session_id, None)


_ledger_store = LedgerStore()


def get_ledger_store() -> LedgerStore:
    return _ledger_store


def get_psa_client() -> PSAClient:
    return PSAClient()


def get_tcg_client() -> TCGSearchClient:
    return TCGSearchClient()


def get_image_client() -> ImageSearchClient:
    return ImageSearchClient()


def get_inventory_client() -> InventoryClient:
    return InventoryClient()


# =============================================================================
# MODELS
# =============================================================================


class CertLookupData(BaseModel):
    """Parsed identity plus the raw PSA record it came from."""

    identity: ParsedCardIdentity
    record: RawPSARecord


class ProductSearchData(BaseModel):
    """TCG products matching a search."""

    products: list[TCGProduct] = Field(default_factory=list)


class ImageSearchData(BaseModel):
    """Card images matching a search."""

    cards: list[CardImage] = Field(default_factory=list)


class LineItemModel(BaseModel):
    """A staged line item."""

    line_id: str
    card_name: str
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

    @classmethod
    def from_item(cls, item: LineItem) -> "LineItemModel":
        data = item.to_dict()
        data.pop("trade_percentage", None)
        return cls(**data)


class LedgerData(BaseModel):
    """Staged items with totals recomputed on read."""

    items: list[LineItemModel] = Field(default_factory=list)
    total_quantity: int = 0
    total_cost: float = 0.0

    @classmethod
    def from_ledger(cls, ledger: StagedLedger) -> "LedgerData":
        return cls(
            items=[LineItemModel.from_item(item) for item in ledger],
            total_quantity=ledger.total_quantity,
            total_cost=round(ledger.total_cost, 2),
        )


class LineItemRequest(BaseModel):
    """Request model for staging a card."""

    card_name: str = Field(..., min_length=1, examples=["Lugia V"])
    barcode_id: str = ""
    set_name: str = ""
    card_number: str = ""
    game: str = ""
    card_type: str = "raw"
    condition: str = ""
    grade: str = ""
    grade_qualifier: str = ""
    purchase_price: float | str | None = 0
    front_label_price: float | str | None = None
    quantity: int | str | None = None
    image_url: str = ""
    cert_number: str = ""
    tcg_product_id: int | str | None = None
    notes: str = ""


class LineItemUpdateRequest(BaseModel):
    """Partial update of a staged card; only fields sent are applied."""

    card_name: str | None = None
    barcode_id: str | None = None
    set_name: str | None = None
    card_number: str | None = None
    game: str | None = None
    card_type: str | None = None
    condition: str | None = None
    grade: str | None = None
    grade_qualifier: str | None = None
    purchase_price: float | str | None = None
    front_label_price: float | str | None = None
    quantity: int | str | None = None
    image_url: str | None = None
    cert_number: str | None = None
    tcg_product_id: int | str | None = None
    notes: str | None = None


class CommitData(BaseModel):
    """Result of committing a ledger to inventory."""

    created: int


LedgerStoreDep = Annotated[LedgerStore, Depends(get_ledger_store)]


# =============================================================================
# LOOKUPS
# =============================================================================


@router.get("/psa/{cert_number}", response_model=ApiResponse[CertLookupData])
async def identify_cert(
    cert_number: str,
    response: Response,
    psa: Annotated[PSAClient, Depends(get_psa_client)],
) -> ApiResponse[Any]:
    """
    Identify a card from its PSA certification number.

    Not-found and transient failures are returned as known failures; the
    `retryable` flag tells the UI whether to offer a retry.
    """
    result = to_lookup_result(await psa.fetch_cert(cert_number))
    if not result.success or result.identity is None or result.record is None:
        kind = result.failure_kind or FailureKind.NOT_FOUND
        response.status_code = _failure_status(kind)
        return ApiResponse.known_failure(kind, result.error or "PSA certification not found")

    return ApiResponse[CertLookupData].success(
        CertLookupData(identity=result.identity, record=result.record)
    )


@router.get("/tcg/search", response_model=ApiResponse[ProductSearchData])
async def search_tcg(
    response: Response,
    tcg: Annotated[TCGSearchClient, Depends(get_tcg_client)],
    q: Annotated[str, Query(description="Card name")] = "",
    set_name: Annotated[str, Query(alias="set", description="Optional set name")] = "",
    number: Annotated[str, Query(description="Optional card number")] = "",
    limit: Annotated[int | None, Query(ge=1, le=50)] = None,
) -> ApiResponse[Any]:
    """
    Search TCG products, widening the query until something matches.

    Queries shorter than two characters return no products.
    """
    result = await search_with_fallback(
        tcg.search, q, set_name, number, limit or settings.tcg_search_limit
    )
    if not result.success:
        kind = result.failure_kind or FailureKind.EXTERNAL_API_ERROR
        response.status_code = _failure_status(kind)
        return ApiResponse.known_failure(kind, result.error or "Failed to search TCG products")

    return ApiResponse[ProductSearchData].success(ProductSearchData(products=result.products))


@router.get("/images/search", response_model=ApiResponse[ImageSearchData])
async def search_images(
    response: Response,
    images: Annotated[ImageSearchClient, Depends(get_image_client)],
    q: Annotated[str, Query(description="Card name")] = "",
    set_name: Annotated[str, Query(alias="set", description="Optional set name")] = "",
    game: Annotated[str, Query(description="Game to search")] = "pokemon",
    number: Annotated[str, Query(description="Optional card number")] = "",
    limit: Annotated[int, Query(ge=1, le=50)] = 6,
) -> ApiResponse[Any]:
    """
    Search card images for a card without a catalog product.

    A search that outlives the hard timeout is abandoned and returned as a
    retryable timeout (504).
    """
    result = await images.search(q, set_name, game, number, limit)
    if not result.success:
        kind = result.failure_kind or FailureKind.EXTERNAL_API_ERROR
        response.status_code = _failure_status(kind)
        return ApiResponse.known_failure(kind, result.error or "Failed to search images")

    return ApiResponse[ImageSearchData].success(ImageSearchData(cards=result.cards))


# =============================================================================
# LEDGER
# =============================================================================


def _line_not_found(response: Response, line_id: str) -> ApiResponse[Any]:
    response.status_code = status.HTTP_404_NOT_FOUND
    return ApiResponse.known_failure(FailureKind.NOT_FOUND, f"No staged item {line_id}")


@router.get("/ledger/{session_id}", response_model=ApiResponse[LedgerData])
async def get_ledger(session_id: str, store: LedgerStoreDep) -> ApiResponse[Any]:
    """List staged items and totals."""
    return ApiResponse[LedgerData].success(LedgerData.from_ledger(store.get(session_id)))


@router.post(
    "/ledger/{session_id}/items",
    response_model=ApiResponse[LineItemModel],
    status_code=status.HTTP_201_CREATED,
)
async def add_ledger_item(
    session_id: str,
    request: LineItemRequest,
    response: Response,
    store: LedgerStoreDep,
) -> ApiResponse[Any]:
    """
    Stage a card.

    A barcode already staged in this session is rejected with 409; the
    existing entry is left untouched.
    """
    ledger = store.open(session_id)
    staged = ledger.add(request.model_dump())
    if staged is None:
        response.status_code = status.HTTP_409_CONFLICT
        return ApiResponse.known_failure(
            FailureKind.INVALID_INPUT, f"Barcode {request.barcode_id} is already staged"
        )
    return ApiResponse[LineItemModel].success(LineItemModel.from_item(staged))


@router.patch(
    "/ledger/{session_id}/items/{line_id}", response_model=ApiResponse[LineItemModel]
)
async def update_ledger_item(
    session_id: str,
    line_id: str,
    request: LineItemUpdateRequest,
    response: Response,
    store: LedgerStoreDep,
) -> ApiResponse[Any]:
    """Edit fields of a staged card."""
    ledger = store.get(session_id)
    item = ledger.get(line_id)
    if item is None:
        return _line_not_found(response, line_id)

    # Updates apply in place, so item reflects them
    if not ledger.update(line_id, request.model_dump(exclude_unset=True)):
        response.status_code = status.HTTP_409_CONFLICT
        return ApiResponse.known_failure(
            FailureKind.INVALID_INPUT, f"Barcode {request.barcode_id} is already staged"
        )
    return ApiResponse[LineItemModel].success(LineItemModel.from_item(item))


@router.post(
    "/ledger/{session_id}/items/{line_id}/increment", response_model=ApiResponse[LedgerData]
)
async def increment_ledger_item(
    session_id: str, line_id: str, response: Response, store: LedgerStoreDep
) -> ApiResponse[Any]:
    ledger = store.get(session_id)
    if not ledger.increment(line_id):
        return _line_not_found(response, line_id)
    return ApiResponse[LedgerData].success(LedgerData.from_ledger(ledger))


@router.post(
    "/ledger/{session_id}/items/{line_id}/decrement", response_model=ApiResponse[LedgerData]
)
async def decrement_ledger_item(
    session_id: str, line_id: str, response: Response, store: LedgerStoreDep
) -> ApiResponse[Any]:
    """Decrement quantity; a barcoded card at one is removed."""
    ledger = store.get(session_id)
    if ledger.get(line_id) is None:
        return _line_not_found(response, line_id)
    ledger.decrement(line_id)
    store.release_if_empty(session_id)
    return ApiResponse[LedgerData].success(LedgerData.from_ledger(ledger))


@router.delete(
    "/ledger/{session_id}/items/{line_id}", response_model=ApiResponse[LedgerData]
)
async def remove_ledger_item(
    session_id: str, line_id: str, response: Response, store: LedgerStoreDep
) -> ApiResponse[Any]:
    ledger = store.get(session_id)
    if not ledger.remove(line_id):
        return _line_not_found(response, line_id)
    store.release_if_empty(session_id)
    return ApiResponse[LedgerData].success(LedgerData.from_ledger(ledger))


@router.delete("/ledger/{session_id}", response_model=ApiResponse[LedgerData])
async def clear_ledger(session_id: str, store: LedgerStoreDep) -> ApiResponse[Any]:
    """Discard every staged item in the session."""
    store.discard(session_id)
    return ApiResponse[LedgerData].success(LedgerData())


@router.post("/ledger/{session_id}/commit", response_model=ApiResponse[CommitData])
async def commit_session(
    session_id: str,
    response: Response,
    store: LedgerStoreDep,
    inventory: Annotated[InventoryClient, Depends(get_inventory_client)],
) -> ApiResponse[Any]:
    """
    Create inventory rows for every staged card, then clear the session.

    On failure the ledger is kept so the commit can be retried.
    """
    try:
        created = await commit_ledger(store.get(session_id), inventory)
    except InventoryCommitError as exc:
        response.status_code = exc.status_code
        return exc.to_response()
    store.release_if_empty(session_id)
    return ApiResponse[CommitData].success(CommitData(created=created))
