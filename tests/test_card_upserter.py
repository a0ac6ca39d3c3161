"""Tests for batch card upserts."""

from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.db.operations import get_card_by_scryfall_id, list_cards
from cardkeeper.parsers.scryfall import map_card
from cardkeeper.services.card_upserter import CardUpserter, UpsertResult


class TestCardUpserter:
    async def test_creates_unknown_cards(self, session: AsyncSession, make_cards) -> None:
        """Cards with new Scryfall ids are inserted."""
        batch = [map_card(card) for card in make_cards(3)]

        result = await CardUpserter().upsert(session, batch)

        assert result == UpsertResult(created=3, updated=0)
        assert len(await list_cards(session)) == 3

    async def test_updates_known_cards(self, session: AsyncSession, make_card) -> None:
        """Cards already imported are overwritten in place."""
        upserter = CardUpserter()
        await upserter.upsert(session, [map_card(make_card(rarity="uncommon"))])

        result = await upserter.upsert(session, [map_card(make_card(rarity="common"))])

        assert result == UpsertResult(created=0, updated=1)
        card = await get_card_by_scryfall_id(session, "e3285e6b-3e79-4d7c-bf96-d920f973b80d")
        assert card.rarity == "common"

    async def test_mixed_batch(self, session: AsyncSession, make_cards) -> None:
        cards = make_cards(4)
        upserter = CardUpserter()
        await upserter.upsert(session, [map_card(card) for card in cards[:2]])

        result = await upserter.upsert(session, [map_card(card) for card in cards])

        assert result == UpsertResult(created=2, updated=2)

    async def test_does_not_commit(self, session_factory, make_card) -> None:
        """Writes stay in the caller's transaction."""
        async with session_factory() as session:
            await CardUpserter().upsert(session, [map_card(make_card())])
            await session.rollback()

        async with session_factory() as session:
            assert await list_cards(session) == []
