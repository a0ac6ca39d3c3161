"""
Database CRUD operations.

Provides async functions for creating, reading, updating, and deleting
cards, collections, decks, and card instances. Functions never commit;
the caller owns the transaction.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cardkeeper.models.db import CardCondition, CardDB, CardInstanceDB, CollectionDB, DeckDB


class DeckOwnershipError(Exception):
    """Raised when a card instance would be placed in another user's deck."""

    def __init__(self, instance_id: int, deck_id: int) -> None:
        self.instance_id = instance_id
        self.deck_id = deck_id
        super().__init__(
            f"Card instance {instance_id} cannot be added to deck {deck_id}: "
            "deck and collection belong to different users"
        )


# --- Card Operations ---


async def get_card(session: AsyncSession, card_id: int) -> CardDB | None:
    """Get a card by primary key."""
    return await session.get(CardDB, card_id)


async def get_card_by_scryfall_id(session: AsyncSession, scryfall_id: str) -> CardDB | None:
    """Get a card by its Scryfall id. Returns None if not imported yet."""
    result = await session.execute(select(CardDB).where(CardDB.scryfall_id == scryfall_id))
    return result.scalar_one_or_none()


async def get_card_by_printing(
    session: AsyncSession,
    title: str,
    edition: str | None,
    collector_number: str | None,
) -> CardDB | None:
    """
    Get a card by its natural key (title, edition, collector number).

    Missing edition or collector number only match rows where that column
    is also empty.
    """
    result = await session.execute(
        select(CardDB)
        .where(
            CardDB.title == title,
            CardDB.edition.is_not_distinct_from(edition),
            CardDB.collector_number.is_not_distinct_from(collector_number),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_card(session: AsyncSession, fields: dict[str, Any]) -> CardDB:
    """
    Insert a new card.

    Raises IntegrityError if the printing or Scryfall id already exists.
    """
    card = CardDB(**fields)
    session.add(card)
    await session.flush()
    return card


async def update_card(session: AsyncSession, card: CardDB, fields: dict[str, Any]) -> CardDB:
    """Overwrite the given fields on an existing card."""
    for name, value in fields.items():
        setattr(card, name, value)
    await session.flush()
    return card


async def list_cards(
    session: AsyncSession,
    *,
    title: str | None = None,
    set_code: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[CardDB]:
    """List cards ordered by title, optionally filtered by title substring or set."""
    query = select(CardDB)
    if title:
        query = query.where(CardDB.title.ilike(f"%{title}%"))
    if set_code:
        query = query.where(CardDB.set_code == set_code)

    result = await session.execute(
        query.order_by(CardDB.title, CardDB.id).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def delete_card(session: AsyncSession, card_id: int) -> bool:
    """
    Delete a card and every owned copy of it.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        select(CardDB).where(CardDB.id == card_id).options(selectinload(CardDB.instances))
    )
    card = result.scalar_one_or_none()
    if not card:
        return False

    await session.delete(card)
    return True


async def get_card_stats(session: AsyncSession) -> dict[str, Any]:
    """
    Summarize the card catalog.

    Returns:
        Dict with total, Scryfall-imported and manual card counts, the number
        of distinct sets, the most recently released set name, and counts by
        rarity.
    """
    total = await session.scalar(select(func.count(CardDB.id))) or 0
    from_scryfall = (
        await session.scalar(select(func.count(CardDB.id)).where(CardDB.scryfall_id.is_not(None)))
        or 0
    )
    unique_sets = (
        await session.scalar(
            select(func.count(distinct(CardDB.set_code))).where(CardDB.set_code.is_not(None))
        )
        or 0
    )
    latest_set = await session.scalar(
        select(CardDB.set_name)
        .where(CardDB.released_at.is_not(None))
        .order_by(CardDB.released_at.desc())
        .limit(1)
    )
    rarity_rows = await session.execute(
        select(CardDB.rarity, func.count(CardDB.id))
        .where(CardDB.rarity.is_not(None))
        .group_by(CardDB.rarity)
    )

    return {
        "total_cards": total,
        "scryfall_cards": from_scryfall,
        "manual_cards": total - from_scryfall,
        "unique_sets": unique_sets,
        "latest_set": latest_set,
        "rarity_breakdown": {rarity: count for rarity, count in rarity_rows.all()},
    }


# --- Collection Operations ---


async def create_collection(
    session: AsyncSession, user_id: str, name: str, description: str | None = None
) -> CollectionDB:
    """Create a new collection for a user."""
    collection = CollectionDB(user_id=user_id, name=name, description=description)
    session.add(collection)
    await session.flush()
    return collection


async def get_collection(session: AsyncSession, collection_id: int) -> CollectionDB | None:
    """Get a collection by id. Returns None if it doesn't exist."""
    return await session.get(CollectionDB, collection_id)


async def list_collections(session: AsyncSession, user_id: str | None = None) -> list[CollectionDB]:
    """List collections, optionally only those of one user."""
    query = select(CollectionDB)
    if user_id is not None:
        query = query.where(CollectionDB.user_id == user_id)
    result = await session.execute(query.order_by(CollectionDB.id))
    return list(result.scalars().all())


async def update_collection(
    session: AsyncSession, collection: CollectionDB, fields: dict[str, Any]
) -> CollectionDB:
    """Overwrite the given fields (name, description) on a collection."""
    for name, value in fields.items():
        setattr(collection, name, value)
    await session.flush()
    return collection


async def delete_collection(session: AsyncSession, collection_id: int) -> bool:
    """
    Delete a collection and the card instances it owns.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        select(CollectionDB)
        .where(CollectionDB.id == collection_id)
        .options(selectinload(CollectionDB.instances))
    )
    collection = result.scalar_one_or_none()
    if not collection:
        return False

    await session.delete(collection)
    return True


# --- Deck Operations ---


async def create_deck(
    session: AsyncSession,
    user_id: str,
    name: str,
    description: str | None = None,
    format_name: str | None = None,
) -> DeckDB:
    """Create a new, empty deck for a user."""
    deck = DeckDB(user_id=user_id, name=name, description=description, format=format_name)
    session.add(deck)
    await session.flush()
    return deck


async def get_deck(session: AsyncSession, deck_id: int) -> DeckDB | None:
    """Get a deck by id. Returns None if it doesn't exist."""
    return await session.get(DeckDB, deck_id)


async def list_decks(session: AsyncSession, user_id: str | None = None) -> list[DeckDB]:
    """List decks, optionally only those of one user."""
    query = select(DeckDB)
    if user_id is not None:
        query = query.where(DeckDB.user_id == user_id)
    result = await session.execute(query.order_by(DeckDB.id))
    return list(result.scalars().all())


async def update_deck(session: AsyncSession, deck: DeckDB, fields: dict[str, Any]) -> DeckDB:
    """Overwrite the given fields (name, description, format) on a deck."""
    for name, value in fields.items():
        setattr(deck, name, value)
    await session.flush()
    return deck


async def delete_deck(session: AsyncSession, deck_id: int) -> bool:
    """
    Delete a deck. Its card instances return to their collections.

    Returns True if deleted, False if not found.
    """
    result = await session.execute(
        select(DeckDB).where(DeckDB.id == deck_id).options(selectinload(DeckDB.instances))
    )
    deck = result.scalar_one_or_none()
    if not deck:
        return False

    for instance in deck.instances:
        instance.deck_id = None
    await session.delete(deck)
    return True


# --- Card Instance Operations ---


async def create_card_instance(
    session: AsyncSession,
    *,
    card_id: int,
    collection_id: int,
    condition: CardCondition = CardCondition.NEAR_MINT,
    foil: bool = False,
    language: str = "English",
    tags: list[str] | None = None,
    purchase_price: Decimal | None = None,
    alter: bool = False,
    proxy: bool = False,
) -> CardInstanceDB:
    """Create one owned copy of a card in a collection."""
    instance = CardInstanceDB(
        card_id=card_id,
        collection_id=collection_id,
        condition=condition,
        foil=foil,
        language=language,
        tags=tags,
        purchase_price=purchase_price,
        alter=alter,
        proxy=proxy,
    )
    session.add(instance)
    await session.flush()
    return instance


async def get_card_instance(session: AsyncSession, instance_id: int) -> CardInstanceDB | None:
    """Get a card instance with its card loaded."""
    result = await session.execute(
        select(CardInstanceDB)
        .where(CardInstanceDB.id == instance_id)
        .options(selectinload(CardInstanceDB.card))
    )
    return result.scalar_one_or_none()


async def list_collection_instances(
    session: AsyncSession, collection_id: int, *, available_only: bool = False
) -> list[CardInstanceDB]:
    """List the card instances of a collection, optionally only those not in a deck."""
    query = (
        select(CardInstanceDB)
        .where(CardInstanceDB.collection_id == collection_id)
        .options(selectinload(CardInstanceDB.card))
    )
    if available_only:
        query = query.where(CardInstanceDB.deck_id.is_(None))
    result = await session.execute(query.order_by(CardInstanceDB.id))
    return list(result.scalars().all())


async def list_deck_instances(session: AsyncSession, deck_id: int) -> list[CardInstanceDB]:
    """List the card instances placed in a deck."""
    result = await session.execute(
        select(CardInstanceDB)
        .where(CardInstanceDB.deck_id == deck_id)
        .options(selectinload(CardInstanceDB.card))
        .order_by(CardInstanceDB.id)
    )
    return list(result.scalars().all())


async def update_card_instance(
    session: AsyncSession, instance: CardInstanceDB, fields: dict[str, Any]
) -> CardInstanceDB:
    """
    Overwrite the given attributes of an owned copy.

    The card, collection and deck placement are not changed here; deck
    placement goes through assign_instance_to_deck so ownership is checked.
    """
    for name, value in fields.items():
        setattr(instance, name, value)
    await session.flush()
    return instance


async def delete_card_instance(session: AsyncSession, instance_id: int) -> bool:
    """
    Delete a card instance.

    Returns True if deleted, False if not found.
    """
    instance = await session.get(CardInstanceDB, instance_id)
    if not instance:
        return False

    await session.delete(instance)
    return True


async def assign_instance_to_deck(
    session: AsyncSession, instance: CardInstanceDB, deck: DeckDB
) -> CardInstanceDB:
    """
    Place a card instance in a deck.

    Raises DeckOwnershipError unless the deck belongs to the user who owns
    the instance's collection.
    """
    collection = await session.get(CollectionDB, instance.collection_id)
    if collection is None or collection.user_id != deck.user_id:
        raise DeckOwnershipError(instance.id, deck.id)

    instance.deck_id = deck.id
    await session.flush()
    return instance


async def remove_instance_from_deck(
    session: AsyncSession, instance: CardInstanceDB
) -> CardInstanceDB:
    """Return a card instance to its collection's available pool."""
    instance.deck_id = None
    await session.flush()
    return instance
