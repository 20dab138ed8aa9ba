from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TCGProduct:
    """
    A product row from the TCG product-search service.

    Attributes:
        product_id: TCGplayer product ID
        name: Catalog name, may carry variant suffixes
        clean_name: Catalog's pre-cleaned name, may be empty
        category_id: TCGplayer category (3 Pokemon, 68 One Piece, 1 Magic, 2 Yu-Gi-Oh)
    """

    product_id: int | str
    name: str
    clean_name: str = ""
    set_name: str = ""
    card_number: str = ""
    image_url: str = ""
    category_id: int | None = None
    url: str = ""
    rarity: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TCGProduct":
        """Build a product from the search service's camelCase JSON."""
        category_id = data.get("categoryId")
        if isinstance(category_id, str) and category_id.strip().isdigit():
            category_id = int(category_id)
        return cls(
            product_id=data.get("productId", ""),
            name=data.get("name") or "",
            clean_name=data.get("cleanName") or "",
            set_name=data.get("setName") or "",
            card_number=data.get("cardNumber") or "",
            image_url=data.get("imageUrl") or "",
            category_id=category_id if isinstance(category_id, int) else None,
            url=data.get("url") or "",
            rarity=data.get("rarity"),
        )
