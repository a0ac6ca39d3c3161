"""
Moxfield CSV import into a collection.

Each data row becomes ``count`` card instances in the target collection.
Cards are matched by title, edition and collector number; unknown printings
get a placeholder card row that a later Scryfall import can enrich.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardkeeper.db.operations import create_card, create_card_instance, get_card_by_printing
from cardkeeper.models.db import CardDB
from cardkeeper.models.import_stats import MoxfieldImportStats
from cardkeeper.parsers.moxfield import MoxfieldRow, parse_moxfield_csv, parse_row

logger = logging.getLogger(__name__)

# Main type given to cards created from CSV rows until real data is imported
PLACEHOLDER_TYPE = "Unknown"


class MoxfieldImporter:
    """
    Imports Moxfield CSV exports.

    Row failures are recorded and skipped. A failure outside row processing
    rolls the whole run back and is reported as row 0.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def run(self, csv_text: str, collection_id: int) -> MoxfieldImportStats:
        """
        Import CSV text into a collection.

        Args:
            csv_text: Full Moxfield CSV export
            collection_id: Collection that receives the card instances; the
                caller checks that it exists

        Returns:
            Run statistics. Never raises for bad data.
        """
        stats = MoxfieldImportStats()

        try:
            async with self.session_factory() as session, session.begin():
                for index, row in enumerate(parse_moxfield_csv(csv_text), start=1):
                    try:
                        await self._process_row(session, row, collection_id, stats)
                    except Exception as e:
                        stats.add_error(index, f"Error processing row: {e}")
                        logger.error("Moxfield import error on row %d: %s", index, e)
        except Exception as e:
            stats.add_error(0, f"Critical import error: {e}")
            logger.error("Moxfield import into collection %d failed: %s", collection_id, e)
            return stats

        logger.info(
            "Moxfield import completed: %d rows, %d cards created, %d found, "
            "%d instances, %d errors",
            stats.processed,
            stats.cards_created,
            stats.cards_found,
            stats.instances_created,
            len(stats.errors),
        )
        return stats

    async def _process_row(
        self,
        session: AsyncSession,
        row: dict[str, str],
        collection_id: int,
        stats: MoxfieldImportStats,
    ) -> None:
        stats.processed += 1
        parsed = parse_row(row)

        card = await self._find_or_create_card(session, parsed, stats)

        for _ in range(parsed.count):
            await create_card_instance(
                session,
                card_id=card.id,
                collection_id=collection_id,
                condition=parsed.condition,
                foil=parsed.foil,
                language=parsed.language,
                tags=parsed.tags,
                purchase_price=parsed.purchase_price,
                alter=parsed.alter,
                proxy=parsed.proxy,
            )
            stats.instances_created += 1

    async def _find_or_create_card(
        self, session: AsyncSession, parsed: MoxfieldRow, stats: MoxfieldImportStats
    ) -> CardDB:
        card = await get_card_by_printing(
            session, parsed.name, parsed.edition, parsed.collector_number
        )
        if card:
            stats.cards_found += 1
            return card

        card = await create_card(
            session,
            {
                "title": parsed.name,
                "edition": parsed.edition,
                "collector_number": parsed.collector_number,
                "type": PLACEHOLDER_TYPE,
            },
        )
        stats.cards_created += 1
        return card
