from dataclasses import dataclass
from enum import Enum


class Game(str, Enum):
    """Trading card games the intake desk stocks."""

    POKEMON = "pokemon"
    ONEPIECE = "onepiece"
    MTG = "mtg"
    YUGIOH = "yugioh"


@dataclass(frozen=True, slots=True)
class PSAPopulation:
    """Population counts PSA reports for a certificate's spec and grade."""

    total: int | None = None
    total_with_qualifier: int | None = None
    higher: int | None = None


@dataclass(frozen=True, slots=True)
class RawPSARecord:
    """
    A certificate as returned by the PSA lookup service.

    Attributes:
        name: Grading-service formatted subject (e.g., "Fa/Lugia V")
        set: Upper-case set description (e.g., "POKEMON SWORD & SHIELD SILVER TEMPEST")
        grade: Label grade text (e.g., "GEM MT 10")
        number: Card number as printed on the label
        cert: Certification number
    """

    name: str = ""
    set: str = ""
    grade: str = ""
    number: str = ""
    cert: str = ""
    image_url: str | None = None
    population: PSAPopulation | None = None
    spec_id: int | None = None
    year: str | None = None
    category: str | None = None
    label_type: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedCardIdentity:
    """
    Normalized card identity derived from a PSA record.

    `set_name` is the display form; `tcg_set_name` is the form handed to the
    product search. They only differ for One Piece, where display carries the
    set code ("A Fist Of Divine Speed - OP11") but the catalog is indexed by
    the lexical name alone.
    """

    card_name: str = ""
    card_number: str = ""
    set_name: str = ""
    series: str = ""
    set_code: str = ""
    tcg_set_name: str = ""
    game: Game | None = None
    numeric_grade: str = ""
