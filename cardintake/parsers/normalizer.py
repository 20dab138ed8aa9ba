"""
Card name and set name normalization.

Pure string transforms used before showing a name to the user or handing it
to the product search. Every function returns "" for empty input, never
raises, and is idempotent: rules are reapplied until the text stops changing.
"""

import re
from collections.abc import Callable

# Trailing "<int> <int>" left by internal catalog numbering
_TRAILING_NUMBER_PAIR = re.compile(r"\s+\d+\s+\d+$")

# Trailing " - 123/456" set-fraction artifact
_TRAILING_SET_FRACTION = re.compile(r"\s*-\s*\d+/\d+$")

# Order matters: a suffix sharing a tail word with a later one must come first
# ("Shiny Rainbow Rare" before "Rainbow Rare", "Alternate Full Art" before "Full Art")
VARIANT_SUFFIXES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"\s+{re.escape(suffix)}$", re.IGNORECASE)
    for suffix in (
        "Alternate Full Art",
        "Full Art",
        "Special Art Rare",
        "Illustration Rare",
        "Shiny Rainbow Rare",
        "Rainbow Rare",
        "Ultra Rare",
        "Secret Rare",
    )
)

# "Swsh12: Silver Tempest" -> "Silver Tempest"
_SET_CODE_PREFIX = re.compile(r"^[A-Za-z]+\d*:\s*")

# Variant codes PSA prepends to subjects: "Fa/Lugia V", "SAR/Charizard ex"
PSA_VARIANT_CODES = (
    "Fa", "Sr", "Ar", "Sar", "Ir", "Sir", "Ur", "Chr", "Csr", "Tg", "Gg", "Rr", "Pr", "Hr",
)
_PSA_VARIANT_PREFIX = re.compile(rf"^(?:{'|'.join(PSA_VARIANT_CODES)})/", re.IGNORECASE)

# Punctuation One Piece catalog names omit ("Monkey.D.Luffy" -> "MonkeyDLuffy")
_LOOKUP_PUNCTUATION = re.compile(r"[.\s']")

_TOKEN = re.compile(r"\S+")


def _until_stable(text: str, step: Callable[[str], str]) -> str:
    while True:
        cleaned = step(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def to_title_case(text: str | None) -> str:
    """
    Lower-case text, then upper-case the first letter of each whitespace token.

    Example:
        "CHARIZARD vmax" -> "Charizard Vmax"
    """
    if not text:
        return ""
    return _TOKEN.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)


def _clean_card_name_once(name: str) -> str:
    cleaned = _TRAILING_NUMBER_PAIR.sub("", name)
    cleaned = _TRAILING_SET_FRACTION.sub("", cleaned).strip()
    for suffix in VARIANT_SUFFIXES:
        cleaned = suffix.sub("", cleaned)
    return cleaned.strip()


def clean_card_name(name: str | None) -> str:
    """
    Strip catalog artifacts and variant suffixes from a card name.

    Example:
        "Umbreon VMAX Alternate Full Art - 215/203" -> "Umbreon VMAX"
    """
    if not name:
        return ""
    return _until_stable(name.strip(), _clean_card_name_once)


def clean_set_name(name: str | None) -> str:
    """Strip a leading set-code prefix such as "Swsh12:"."""
    if not name:
        return ""
    return _until_stable(name.strip(), lambda s: _SET_CODE_PREFIX.sub("", s).strip())


def clean_psa_card_name(name: str | None) -> str:
    """Strip a leading PSA variant code such as "Fa/" from a certificate subject."""
    if not name:
        return ""
    return _until_stable(name.strip(), lambda s: _PSA_VARIANT_PREFIX.sub("", s).strip())


def clean_for_card_lookup(name: str | None) -> str:
    """Remove periods, whitespace, and apostrophes for punctuation-free catalogs."""
    if not name:
        return ""
    return _LOOKUP_PUNCTUATION.sub("", name)
