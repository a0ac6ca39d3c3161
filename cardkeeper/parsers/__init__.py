from cardkeeper.parsers.moxfield import (
    MoxfieldRow,
    parse_moxfield_csv,
    parse_row,
    validate_moxfield_header,
)
from cardkeeper.parsers.scryfall import iter_bulk_cards, map_card, parse_main_type, parse_subtype

__all__ = [
    "MoxfieldRow",
    "iter_bulk_cards",
    "map_card",
    "parse_main_type",
    "parse_moxfield_csv",
    "parse_row",
    "parse_subtype",
    "validate_moxfield_header",
]
