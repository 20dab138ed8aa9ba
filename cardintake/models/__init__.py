from cardintake.models.card_identity import (
    Game,
    ParsedCardIdentity,
    PSAPopulation,
    RawPSARecord,
)
from cardintake.models.failure import (
    ApiResponse,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
    is_retryable,
)
from cardintake.models.line_item import LineItem, coerce_number, coerce_quantity
from cardintake.models.lookup import (
    CardImage,
    ImageSearchResult,
    LookupResult,
    PSAFetchResult,
    SearchResponse,
)
from cardintake.models.tcg_product import TCGProduct

__all__ = [
    "ApiResponse",
    "CardImage",
    "FailureDetail",
    "FailureKind",
    "Game",
    "ImageSearchResult",
    "KnownError",
    "LineItem",
    "LookupResult",
    "OutcomeType",
    "PSAFetchResult",
    "PSAPopulation",
    "ParsedCardIdentity",
    "RawPSARecord",
    "SearchResponse",
    "TCGProduct",
    "coerce_number",
    "coerce_quantity",
    "is_retryable",
]
