"""
Batch upsert of mapped Scryfall cards keyed by scryfall_id.
"""

from collections.abc import Sequence
from typing import Any, NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.db.operations import create_card, get_card_by_scryfall_id, update_card


class UpsertResult(NamedTuple):
    """Rows written by one batch."""

    created: int
    updated: int


class CardUpserter:
    """
    Writes batches of mapped cards inside the caller's transaction.

    Each record is looked up by scryfall_id: existing rows have every field
    overwritten, unknown ids are inserted. Records are written in batch order.
    """

    async def upsert(self, session: AsyncSession, batch: Sequence[dict[str, Any]]) -> UpsertResult:
        created = 0
        updated = 0

        for fields in batch:
            existing = await get_card_by_scryfall_id(session, fields["scryfall_id"])
            if existing:
                await update_card(session, existing, fields)
                updated += 1
            else:
                await create_card(session, fields)
                created += 1

        return UpsertResult(created=created, updated=updated)
