"""Tests for SQLAlchemy ORM models."""

from decimal import Decimal

import pytest
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.models.db import CardCondition, CardDB, CardInstanceDB, CollectionDB, DeckDB


async def add_card(session: AsyncSession, **fields) -> CardDB:
    card = CardDB(**{"title": "Lightning Bolt", "type": "Instant", **fields})
    session.add(card)
    await session.flush()
    return card


class TestCardDB:
    async def test_create_card(self, session: AsyncSession) -> None:
        """Can create a card with only the required columns."""
        await add_card(session, edition="Double Masters", collector_number="141")
        await session.commit()

        result = await session.execute(select(CardDB).where(CardDB.title == "Lightning Bolt"))
        saved = result.scalar_one()

        assert saved.id is not None
        assert saved.created_at is not None
        assert saved.scryfall_id is None

    async def test_flag_defaults(self, session: AsyncSession) -> None:
        """Boolean flags default to false except nonfoil and booster."""
        card = await add_card(session)

        assert card.foil is False
        assert card.reserved is False
        assert card.nonfoil is True
        assert card.booster is True
        assert card.lang == "en"

    async def test_printing_unique(self, session: AsyncSession) -> None:
        """Title, edition and collector number identify a printing."""
        from sqlalchemy.exc import IntegrityError

        await add_card(session, edition="2xm", collector_number="141")

        with pytest.raises(IntegrityError):
            await add_card(session, edition="2xm", collector_number="141")

    async def test_same_title_other_printing(self, session: AsyncSession) -> None:
        await add_card(session, edition="2xm", collector_number="141")
        await add_card(session, edition="m10", collector_number="146")
        await session.commit()

        result = await session.execute(select(CardDB))
        assert len(result.scalars().all()) == 2

    async def test_scryfall_id_unique(self, session: AsyncSession) -> None:
        from sqlalchemy.exc import IntegrityError

        await add_card(session, collector_number="1", scryfall_id="abc")

        with pytest.raises(IntegrityError):
            await add_card(session, collector_number="2", scryfall_id="abc")

    async def test_set_code_column_name(self, session: AsyncSession) -> None:
        """set_code is stored in the "set" column."""
        await add_card(session, set_code="2xm")
        await session.commit()

        value = await session.scalar(text('SELECT "set" FROM cards'))

        assert value == "2xm"

    async def test_json_fields(self, session: AsyncSession) -> None:
        await add_card(
            session,
            colors=["R"],
            legalities={"modern": "legal"},
            prices={"usd": "1.50", "eur": None},
        )
        await session.commit()
        session.expunge_all()

        saved = (await session.execute(select(CardDB))).scalar_one()

        assert saved.colors == ["R"]
        assert saved.legalities == {"modern": "legal"}
        assert saved.prices == {"usd": "1.50", "eur": None}


class TestCardInstanceDB:
    async def test_condition_stored_as_value(self, session: AsyncSession) -> None:
        """Conditions are persisted by their lowercase value."""
        card = await add_card(session)
        collection = CollectionDB(user_id="user-1", name="Binder")
        session.add(collection)
        await session.flush()
        session.add(
            CardInstanceDB(
                card_id=card.id,
                collection_id=collection.id,
                condition=CardCondition.LIGHTLY_PLAYED,
            )
        )
        await session.commit()

        value = await session.scalar(text("SELECT condition FROM card_instances"))

        assert value == "lightly_played"

    async def test_defaults_and_price(self, session: AsyncSession) -> None:
        card = await add_card(session)
        collection = CollectionDB(user_id="user-1", name="Binder")
        session.add(collection)
        await session.flush()
        session.add(
            CardInstanceDB(
                card_id=card.id,
                collection_id=collection.id,
                purchase_price=Decimal("12.34"),
            )
        )
        await session.commit()
        session.expunge_all()

        saved = (await session.execute(select(CardInstanceDB))).scalar_one()

        assert saved.condition == CardCondition.NEAR_MINT
        assert saved.language == "English"
        assert saved.foil is False
        assert saved.proxy is False
        assert saved.purchase_price == Decimal("12.34")
        assert saved.is_available

    async def test_is_available_tracks_deck(self, session: AsyncSession) -> None:
        card = await add_card(session)
        collection = CollectionDB(user_id="user-1", name="Binder")
        deck = DeckDB(user_id="user-1", name="Burn")
        session.add_all([collection, deck])
        await session.flush()

        instance = CardInstanceDB(card_id=card.id, collection_id=collection.id, deck_id=deck.id)
        session.add(instance)
        await session.flush()

        assert not instance.is_available


class TestCondition:
    def test_values(self) -> None:
        assert [condition.value for condition in CardCondition] == [
            "mint",
            "near_mint",
            "lightly_played",
            "moderately_played",
            "heavily_played",
            "damaged",
        ]
