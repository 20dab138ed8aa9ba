"""
CardIntake services.

Card lookups, catalog searches, and the staged purchase and trade ledgers.
"""

from cardintake.services.barcode_scanner import ScanBuffer
from cardintake.services.catalog_client import ImageSearchClient, TCGSearchClient
from cardintake.services.game_resolver import (
    CATEGORY_GAMES,
    DEFAULT_GAME,
    category_id_for_game,
    detect_game_from_category_id,
)
from cardintake.services.intake_form import (
    IntakeForm,
    apply_psa_identity,
    apply_tcg_product,
    condition_or_grade,
    form_to_line_item,
    is_duplicate_barcode,
)
from cardintake.services.intake_session import IntakeSession
from cardintake.services.inventory_commit import (
    InventoryClient,
    InventoryCommitError,
    commit_ledger,
    expand_line_item,
)
from cardintake.services.lookup_coordinator import (
    CallState,
    DebouncedCall,
    ProductSearchCoordinator,
    PSALookupCoordinator,
    to_lookup_result,
)
from cardintake.services.psa_client import PSAClient, record_from_payload
from cardintake.services.staged_ledger import StagedLedger, normalize_barcode
from cardintake.services.tcg_search import search_products, search_with_fallback
from cardintake.services.trade_session import (
    TradeOutItem,
    TradeSession,
    TradeSummary,
    compute_trade_value,
)

__all__ = [
    # Game resolution
    "CATEGORY_GAMES",
    "DEFAULT_GAME",
    "category_id_for_game",
    "detect_game_from_category_id",
    # HTTP clients
    "ImageSearchClient",
    "InventoryClient",
    "PSAClient",
    "TCGSearchClient",
    "record_from_payload",
    # Search cascade
    "search_products",
    "search_with_fallback",
    # Debounced lookups
    "CallState",
    "DebouncedCall",
    "PSALookupCoordinator",
    "ProductSearchCoordinator",
    "to_lookup_result",
    # Intake form and session
    "IntakeForm",
    "IntakeSession",
    "ScanBuffer",
    "apply_psa_identity",
    "apply_tcg_product",
    "condition_or_grade",
    "form_to_line_item",
    "is_duplicate_barcode",
    # Ledgers
    "InventoryCommitError",
    "StagedLedger",
    "TradeOutItem",
    "TradeSession",
    "TradeSummary",
    "commit_ledger",
    "compute_trade_value",
    "expand_line_item",
    "normalize_barcode",
]
