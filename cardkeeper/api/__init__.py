from cardkeeper.api.card_instances import router as card_instances_router
from cardkeeper.api.cards import router as cards_router
from cardkeeper.api.collections import router as collections_router
from cardkeeper.api.decks import router as decks_router
from cardkeeper.api.health import router as health_router
from cardkeeper.api.imports import router as imports_router
from cardkeeper.api.scryfall import router as scryfall_router

__all__ = [
    "card_instances_router",
    "cards_router",
    "collections_router",
    "decks_router",
    "health_router",
    "imports_router",
    "scryfall_router",
]
