from cardkeeper.db.database import get_session, init_db
from cardkeeper.db.operations import (
    DeckOwnershipError,
    assign_instance_to_deck,
    create_card,
    create_card_instance,
    create_collection,
    create_deck,
    delete_card,
    delete_card_instance,
    delete_collection,
    delete_deck,
    get_card,
    get_card_by_printing,
    get_card_by_scryfall_id,
    get_card_instance,
    get_card_stats,
    get_collection,
    get_deck,
    list_cards,
    list_collection_instances,
    list_collections,
    list_deck_instances,
    list_decks,
    remove_instance_from_deck,
    update_card,
    update_card_instance,
    update_collection,
    update_deck,
)

__all__ = [
    "DeckOwnershipError",
    "assign_instance_to_deck",
    "create_card",
    "create_card_instance",
    "create_collection",
    "create_deck",
    "delete_card",
    "delete_card_instance",
    "delete_collection",
    "delete_deck",
    "get_card",
    "get_card_by_printing",
    "get_card_by_scryfall_id",
    "get_card_instance",
    "get_card_stats",
    "get_collection",
    "get_deck",
    "get_session",
    "init_db",
    "list_cards",
    "list_collection_instances",
    "list_collections",
    "list_deck_instances",
    "list_decks",
    "remove_instance_from_deck",
    "update_card",
    "update_card_instance",
    "update_collection",
    "update_deck",
]
