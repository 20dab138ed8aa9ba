"""
PSA certificate parser.

Turns a raw PSA record into a normalized card identity. PSA reports the game,
series, and set as one upper-case string ("POKEMON SWORD & SHIELD SILVER
TEMPEST"), so the set is decomposed by testing ordered prefix lists.

Prefix lists are evaluated first-match-wins, in list order. A general pattern
listed before a more specific one sharing its leading token shadows it; the
order below is kept exactly as the shop's intake desk has always applied it.
"""

import re
from dataclasses import dataclass
from typing import TypeVar

from cardintake.models.card_identity import Game, ParsedCardIdentity, RawPSARecord
from cardintake.parsers.normalizer import clean_psa_card_name, to_title_case

# =============================================================================
# ORDERED PREFIX TABLES
# =============================================================================

GAME_PREFIXES: tuple[tuple[re.Pattern[str], Game], ...] = (
    (re.compile(r"^POKEMON\s+", re.IGNORECASE), Game.POKEMON),
    (re.compile(r"^ONE PIECE\s+", re.IGNORECASE), Game.ONEPIECE),
    (re.compile(r"^ONEPIECE\s+", re.IGNORECASE), Game.ONEPIECE),
    (re.compile(r"^MTG\s+", re.IGNORECASE), Game.MTG),
    (re.compile(r"^MAGIC\s+", re.IGNORECASE), Game.MTG),
    (re.compile(r"^MAGIC:?\s*THE GATHERING\s+", re.IGNORECASE), Game.MTG),
    (re.compile(r"^YU-?GI-?OH!?\s+", re.IGNORECASE), Game.YUGIOH),
    (re.compile(r"^YUGIOH!?\s+", re.IGNORECASE), Game.YUGIOH),
)

POKEMON_SERIES_PREFIXES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(SWORD\s*&?\s*SHIELD)\s+", re.IGNORECASE), "Sword & Shield"),
    (re.compile(r"^(SUN\s*&?\s*MOON)\s+", re.IGNORECASE), "Sun & Moon"),
    (re.compile(r"^(XY)\s+", re.IGNORECASE), "XY"),
    (re.compile(r"^(BLACK\s*&?\s*WHITE)\s+", re.IGNORECASE), "Black & White"),
    (re.compile(r"^(SCARLET\s*&?\s*VIOLET)\s+", re.IGNORECASE), "Scarlet & Violet"),
    (re.compile(r"^(DIAMOND\s*&?\s*PEARL)\s+", re.IGNORECASE), "Diamond & Pearl"),
    (
        re.compile(r"^(HEARTGOLD\s*&?\s*SOULSILVER)\s+", re.IGNORECASE),
        "HeartGold & SoulSilver",
    ),
    (re.compile(r"^(PLATINUM)\s+", re.IGNORECASE), "Platinum"),
    (re.compile(r"^(EX)\s+", re.IGNORECASE), "EX"),
)

# "OP11-A FIST OF DIVINE SPEED" -> ("OP11", "A FIST OF DIVINE SPEED")
_ONE_PIECE_SET = re.compile(r"^(OP\d+[A-Z]?)-(.+)$", re.IGNORECASE)

_NUMERIC_GRADE = re.compile(r"(\d+(?:\.\d+)?)")

_CERT_NUMBER = re.compile(r"^\d{7,9}$")

R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class SetParts:
    """A PSA set string decomposed into game, series, and set names."""

    game: Game | None = None
    series: str = ""
    set_name: str = ""
    set_code: str = ""
    tcg_set_name: str = ""


def is_psa_cert_number(value: object) -> bool:
    """Check if a scanned value looks like a PSA cert number (7-9 digits)."""
    if not isinstance(value, str):
        return False
    return bool(_CERT_NUMBER.match(value.strip()))


def extract_numeric_grade(grade: str | None) -> str:
    """
    Pull the first decimal number out of a PSA grade label.

    Example:
        "GEM MT 10" -> "10", "NM-MT 8.5" -> "8.5", "AUTHENTIC" -> ""
    """
    if not grade:
        return ""
    match = _NUMERIC_GRADE.search(grade)
    return match.group(1) if match else ""


def _match_prefix(
    text: str, table: tuple[tuple[re.Pattern[str], R], ...]
) -> tuple[R | None, str]:
    for pattern, result in table:
        if pattern.match(text):
            return result, pattern.sub("", text, count=1)
    return None, text


def detect_game_from_set(raw_set: str | None) -> Game | None:
    """Detect the game from a PSA set string's leading phrase, or None."""
    if not raw_set:
        return None
    game, _ = _match_prefix(raw_set, GAME_PREFIXES)
    return game


def parse_set_name(raw_set: str | None) -> SetParts:
    """
    Decompose a PSA set string.

    Steps:
    1. Strip a recognized game prefix (first match wins)
    2. One Piece "OP11-NAME" sets: display "Name - OP11", search by "Name"
    3. Pokemon: strip a recognized series prefix (first match wins)
    4. Title-case what remains as the set name

    Args:
        raw_set: Set string as reported by PSA

    Returns:
        SetParts; all fields empty and game None when raw_set is empty
    """
    if not raw_set:
        return SetParts()

    game, remainder = _match_prefix(raw_set, GAME_PREFIXES)

    one_piece = _ONE_PIECE_SET.match(remainder)
    if one_piece:
        set_code = one_piece.group(1).upper()
        lexical_name = to_title_case(one_piece.group(2).strip())
        return SetParts(
            game=Game.ONEPIECE,
            set_name=f"{lexical_name} - {set_code}",
            set_code=set_code,
            tcg_set_name=lexical_name,
        )

    series = ""
    if game is Game.POKEMON:
        matched_series, remainder = _match_prefix(remainder, POKEMON_SERIES_PREFIXES)
        series = matched_series or ""

    set_name = to_title_case(remainder.strip())
    return SetParts(game=game, series=series, set_name=set_name, tcg_set_name=set_name)


def parse_psa_record(raw: RawPSARecord) -> ParsedCardIdentity:
    """
    Derive a normalized card identity from a raw PSA record.

    The game comes only from the set string's prefix, never from the name.
    The card number passes through unchanged.
    """
    parts = parse_set_name(raw.set)
    return ParsedCardIdentity(
        card_name=to_title_case(clean_psa_card_name(raw.name)),
        card_number=raw.number or "",
        set_name=parts.set_name,
        series=parts.series,
        set_code=parts.set_code,
        tcg_set_name=parts.tcg_set_name,
        game=parts.game,
        numeric_grade=extract_numeric_grade(raw.grade),
    )
