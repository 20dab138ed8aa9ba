from collections.abc import Callable
from typing import Any

import pytest

from cardintake.models.card_identity import PSAPopulation, RawPSARecord
from cardintake.models.failure import FailureKind
from cardintake.models.lookup import PSAFetchResult, SearchResponse
from cardintake.models.tcg_product import TCGProduct


class RecordingSearch:
    """Fake product search: returns products keyed by (name, set) and records calls."""

    def __init__(
        self,
        hits: dict[tuple[str, str], list[TCGProduct]] | None = None,
        failure: FailureKind | None = None,
    ) -> None:
        self.hits = hits or {}
        self.failure = failure
        self.calls: list[tuple[str, str, str, int]] = []

    async def __call__(
        self, card_name: str, set_name: str = "", card_number: str = "", limit: int = 9
    ) -> SearchResponse:
        self.calls.append((card_name, set_name, card_number, limit))
        if self.failure is not None:
            return SearchResponse.failed(self.failure, "search failed")
        return SearchResponse(success=True, products=self.hits.get((card_name, set_name), []))

    # TCGSearchClient-shaped alias
    async def search(self, *args: Any, **kwargs: Any) -> SearchResponse:
        return await self(*args, **kwargs)


class RecordingFetch:
    """Fake PSA fetch returning a fixed result and recording cert numbers."""

    def __init__(self, result: PSAFetchResult) -> None:
        self.result = result
        self.calls: list[str] = []

    async def __call__(self, cert_number: str) -> PSAFetchResult:
        self.calls.append(cert_number)
        return self.result

    async def fetch_cert(self, cert_number: str) -> PSAFetchResult:
        return await self(cert_number)


@pytest.fixture
def lugia_record() -> RawPSARecord:
    """PSA record for a graded Pokemon card."""
    return RawPSARecord(
        name="FA/LUGIA V",
        set="POKEMON SWORD & SHIELD SILVER TEMPEST",
        grade="GEM MT 10",
        number="186",
        cert="12345678",
        population=PSAPopulation(total=1500, higher=0),
    )


@pytest.fixture
def luffy_record() -> RawPSARecord:
    """PSA record for a graded One Piece card."""
    return RawPSARecord(
        name="MONKEY.D.LUFFY",
        set="ONE PIECE OP11-A FIST OF DIVINE SPEED",
        grade="MINT 9",
        number="OP11-118",
        cert="87654321",
    )


@pytest.fixture
def make_product() -> Callable[..., TCGProduct]:
    def _make(**overrides: Any) -> TCGProduct:
        fields: dict[str, Any] = {
            "product_id": 250309,
            "name": "Lugia V (Alternate Full Art)",
            "clean_name": "Lugia V Alternate Full Art",
            "set_name": "SWSH12: Silver Tempest",
            "card_number": "186/195",
            "image_url": "https://tcgplayer-cdn.tcgplayer.com/product/250309_200w.jpg",
            "category_id": 3,
        }
        fields.update(overrides)
        return TCGProduct(**fields)

    return _make


@pytest.fixture
def recording_search() -> type[RecordingSearch]:
    return RecordingSearch


@pytest.fixture
def recording_fetch() -> type[RecordingFetch]:
    return RecordingFetch
