"""
Game/category resolver.

Maps TCGplayer category IDs to the intake desk's game enum. Unknown and
missing categories fall back to Pokemon; the fallback is a default for the
form's game field, not evidence that the product is a Pokemon card.
"""

from cardintake.models.card_identity import Game

CATEGORY_GAMES: dict[int, Game] = {
    3: Game.POKEMON,
    68: Game.ONEPIECE,
    1: Game.MTG,
    2: Game.YUGIOH,
}

DEFAULT_GAME = Game.POKEMON


def detect_game_from_category_id(category_id: int | None) -> Game:
    """Resolve a TCGplayer category ID to a game, defaulting to Pokemon."""
    if not isinstance(category_id, int) or isinstance(category_id, bool):
        return DEFAULT_GAME
    return CATEGORY_GAMES.get(category_id, DEFAULT_GAME)


def category_id_for_game(game: Game | str | None) -> int | None:
    """Inverse of detect_game_from_category_id; None for unknown games."""
    for category_id, known in CATEGORY_GAMES.items():
        if game == known:
            return category_id
    return None
