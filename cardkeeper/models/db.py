"""
SQLAlchemy ORM models for persistent storage.

Cards are catalog printings (mostly imported from Scryfall). Card instances
are physical copies owned through a collection and optionally placed in a deck.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardCondition(str, Enum):
    """Physical condition of an owned copy."""

    MINT = "mint"
    NEAR_MINT = "near_mint"
    LIGHTLY_PLAYED = "lightly_played"
    MODERATELY_PLAYED = "moderately_played"
    HEAVILY_PLAYED = "heavily_played"
    DAMAGED = "damaged"


class CardDB(Base):
    """
    One printing of a card.

    A printing is unique by (title, edition, collector_number). Scryfall
    imports additionally key on scryfall_id; cards created from CSV imports
    have no scryfall_id until a bulk import fills it in.
    """

    __tablename__ = "cards"
    __table_args__ = (
        UniqueConstraint("title", "edition", "collector_number", name="uq_card_printing"),
        Index("ix_cards_edition_collector_number", "edition", "collector_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Original columns
    title: Mapped[str] = mapped_column(String(200))
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type: Mapped[str] = mapped_column(String(100), index=True)
    subtype: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    # Integer columns only hold numeric stats; *_text keeps "*", "X", "1+*"
    power: Mapped[int | None] = mapped_column(Integer, nullable=True)
    toughness: Mapped[int | None] = mapped_column(Integer, nullable=True)
    power_text: Mapped[str | None] = mapped_column(String(20), nullable=True)
    toughness_text: Mapped[str | None] = mapped_column(String(20), nullable=True)
    edition: Mapped[str | None] = mapped_column(String(100), nullable=True)
    collector_number: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Scryfall identifiers
    scryfall_id: Mapped[str | None] = mapped_column(String(36), unique=True, nullable=True)
    oracle_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    multiverse_ids: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    mtgo_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    mtgo_foil_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    arena_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    tcgplayer_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    tcgplayer_etched_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cardmarket_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Gameplay
    mana_cost: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cmc: Mapped[float | None] = mapped_column(Float, nullable=True)
    oracle_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    flavor_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    type_line: Mapped[str | None] = mapped_column(String(200), nullable=True)
    colors: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    color_identity: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    color_indicator: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    keywords: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    produced_mana: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    loyalty: Mapped[str | None] = mapped_column(String(20), nullable=True)
    defense: Mapped[str | None] = mapped_column(String(20), nullable=True)
    hand_modifier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    life_modifier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    legalities: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    edhrec_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    penny_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Printing
    set_code: Mapped[str | None] = mapped_column("set", String(20), nullable=True, index=True)
    set_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    set_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    rarity: Mapped[str | None] = mapped_column(String(30), nullable=True, index=True)
    released_at: Mapped[date | None] = mapped_column(Date, nullable=True)
    lang: Mapped[str] = mapped_column(String(10), default="en")
    image_uris: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    layout: Mapped[str | None] = mapped_column(String(50), nullable=True)
    highres_image: Mapped[bool] = mapped_column(Boolean, default=False)
    image_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    border_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    frame: Mapped[str | None] = mapped_column(String(20), nullable=True)
    frame_effects: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    security_stamp: Mapped[str | None] = mapped_column(String(50), nullable=True)
    watermark: Mapped[str | None] = mapped_column(String(100), nullable=True)
    artist: Mapped[str | None] = mapped_column(String(200), nullable=True)
    artist_ids: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    illustration_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # Flags
    reserved: Mapped[bool] = mapped_column(Boolean, default=False)
    foil: Mapped[bool] = mapped_column(Boolean, default=False)
    nonfoil: Mapped[bool] = mapped_column(Boolean, default=True)
    oversized: Mapped[bool] = mapped_column(Boolean, default=False)
    promo: Mapped[bool] = mapped_column(Boolean, default=False)
    reprint: Mapped[bool] = mapped_column(Boolean, default=False)
    variation: Mapped[bool] = mapped_column(Boolean, default=False)
    digital: Mapped[bool] = mapped_column(Boolean, default=False)
    full_art: Mapped[bool] = mapped_column(Boolean, default=False)
    textless: Mapped[bool] = mapped_column(Boolean, default=False)
    booster: Mapped[bool] = mapped_column(Boolean, default=True)
    story_spotlight: Mapped[bool] = mapped_column(Boolean, default=False)
    game_changer: Mapped[bool] = mapped_column(Boolean, default=False)

    # Commerce and links
    finishes: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    games: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    promo_types: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    prices: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    purchase_uris: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    related_uris: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    variation_of: Mapped[str | None] = mapped_column(String(36), nullable=True)
    card_back_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    scryfall_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    rulings_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    prints_search_uri: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    instances: Mapped[list["CardInstanceDB"]] = relationship(
        back_populates="card", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CardDB(title={self.title}, edition={self.edition}, no={self.collector_number})>"


class CollectionDB(Base):
    """A named group of owned card copies belonging to one user."""

    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    instances: Mapped[list["CardInstanceDB"]] = relationship(
        back_populates="collection", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CollectionDB(id={self.id}, user_id={self.user_id}, name={self.name})>"


class DeckDB(Base):
    """A deck built from a user's owned copies."""

    __tablename__ = "decks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    format: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    instances: Mapped[list["CardInstanceDB"]] = relationship(back_populates="deck")

    def __repr__(self) -> str:
        return f"<DeckDB(id={self.id}, user_id={self.user_id}, name={self.name})>"


class CardInstanceDB(Base):
    """
    One physical copy of a card.

    Belongs to exactly one collection. deck_id is None while the copy is
    available and set while it is placed in a deck of the same user.
    """

    __tablename__ = "card_instances"
    __table_args__ = (Index("ix_card_instances_collection_deck", "collection_id", "deck_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    collection_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("collections.id", ondelete="CASCADE")
    )
    deck_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("decks.id", ondelete="SET NULL"), nullable=True, index=True
    )
    condition: Mapped[CardCondition] = mapped_column(
        SAEnum(
            CardCondition,
            native_enum=False,
            length=30,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=CardCondition.NEAR_MINT,
    )
    foil: Mapped[bool] = mapped_column(Boolean, default=False)
    language: Mapped[str] = mapped_column(String(50), default="English")
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    alter: Mapped[bool] = mapped_column(Boolean, default=False)
    proxy: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    card: Mapped["CardDB"] = relationship(back_populates="instances")
    collection: Mapped["CollectionDB"] = relationship(back_populates="instances")
    deck: Mapped["DeckDB | None"] = relationship(back_populates="instances")

    @property
    def is_available(self) -> bool:
        """True while the copy is not placed in any deck."""
        return self.deck_id is None

    def __repr__(self) -> str:
        return f"<CardInstanceDB(id={self.id}, card_id={self.card_id}, deck_id={self.deck_id})>"
