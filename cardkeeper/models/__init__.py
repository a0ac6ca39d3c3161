from cardkeeper.models.db import (
    Base,
    CardCondition,
    CardDB,
    CardInstanceDB,
    CollectionDB,
    DeckDB,
)
from cardkeeper.models.import_stats import (
    CardError,
    ImportStats,
    MoxfieldImportStats,
    RowError,
)
from cardkeeper.models.scryfall_card import CardFace, ScryfallCard

__all__ = [
    "Base",
    "CardCondition",
    "CardDB",
    "CardError",
    "CardFace",
    "CardInstanceDB",
    "CollectionDB",
    "DeckDB",
    "ImportStats",
    "MoxfieldImportStats",
    "RowError",
    "ScryfallCard",
]
