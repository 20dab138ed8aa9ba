from cardintake.parsers.normalizer import (
    clean_card_name,
    clean_for_card_lookup,
    clean_psa_card_name,
    clean_set_name,
    to_title_case,
)
from cardintake.parsers.psa_record import (
    GAME_PREFIXES,
    POKEMON_SERIES_PREFIXES,
    SetParts,
    detect_game_from_set,
    extract_numeric_grade,
    is_psa_cert_number,
    parse_psa_record,
    parse_set_name,
)

__all__ = [
    "GAME_PREFIXES",
    "POKEMON_SERIES_PREFIXES",
    "SetParts",
    "clean_card_name",
    "clean_for_card_lookup",
    "clean_psa_card_name",
    "clean_set_name",
    "detect_game_from_set",
    "extract_numeric_grade",
    "is_psa_cert_number",
    "parse_psa_record",
    "parse_set_name",
    "to_title_case",
]
