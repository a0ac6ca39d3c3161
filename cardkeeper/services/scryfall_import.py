"""
Scryfall bulk import.

Streams a Scryfall bulk data file (downloaded first when given a URL),
filters out non-card objects and excluded layouts, maps each card and
upserts it in fixed-size batches. The whole run is one transaction: it either
commits every batch or none of them.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardkeeper.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SKIP_LAYOUTS,
    PROGRESS_LOG_INTERVAL,
    settings,
)
from cardkeeper.models.import_stats import ImportStats
from cardkeeper.parsers.scryfall import iter_bulk_cards, map_card
from cardkeeper.services.card_upserter import CardUpserter
from cardkeeper.services.errors import CardMappingError, ImportFailedError
from cardkeeper.services.scryfall_client import BulkDataCatalog, ScryfallClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportOptions:
    """
    Per-run import options.

    Attributes:
        skip_layouts: Card layouts to leave out (tokens, emblems, ...)
        batch_size: Mapped cards per upsert batch. Callers keep it within
            MIN_BATCH_SIZE..MAX_BATCH_SIZE; the importer does not re-check.
    """

    skip_layouts: frozenset[str] = DEFAULT_SKIP_LAYOUTS
    batch_size: int = DEFAULT_BATCH_SIZE


def is_url(source: str) -> bool:
    """True for http(s) URLs, False for local paths."""
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ScryfallImporter:
    """
    Runs Scryfall bulk imports.

    Args:
        session_factory: Opens the session that holds the run's transaction
        client: Scryfall client for manifest lookups and downloads
        upserter: Writes each batch; replaceable for instrumentation
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: ScryfallClient | None = None,
        upserter: CardUpserter | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.client = client if client is not None else ScryfallClient()
        self.catalog = BulkDataCatalog(self.client)
        self.upserter = upserter if upserter is not None else CardUpserter()

    async def run(
        self,
        source: str | None = None,
        options: ImportOptions | None = None,
        *,
        data_type: str | None = None,
    ) -> ImportStats:
        """
        Import cards from a bulk data URL or local file.

        Args:
            source: Download URL or local path. When omitted, the download URL
                of ``data_type`` is looked up in the Scryfall manifest.
            options: Layout filter and batch size
            data_type: Bulk data type used when no source is given.
                Defaults to settings.scryfall_default_bulk_type.

        Returns:
            Statistics of the committed run

        Raises:
            RemoteApiError, BulkDataNotFoundError: Manifest lookup failed
            DownloadError: The bulk file could not be downloaded
            FileNotFoundError: A local source does not exist
            ImportFailedError: The run failed while streaming and was rolled back
        """
        options = options or ImportOptions()

        if source is None:
            source = await self.catalog.resolve_url(
                data_type or settings.scryfall_default_bulk_type
            )

        logger.info("Starting Scryfall import from %s", source)

        if is_url(source):
            return await self._import_from_url(source, options)
        return await self._import_from_file(Path(source), options, source)

    async def _import_from_url(self, url: str, options: ImportOptions) -> ImportStats:
        fd, temp_name = tempfile.mkstemp(prefix="scryfall_", suffix=".json")
        os.close(fd)
        temp_path = Path(temp_name)

        try:
            await self.client.download_to_file(url, temp_path)
            return await self._import_from_file(temp_path, options, url)
        finally:
            temp_path.unlink(missing_ok=True)

    async def _import_from_file(
        self, path: Path, options: ImportOptions, source: str
    ) -> ImportStats:
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        logger.info(
            "Processing Scryfall file %s (%.2f MB)", path, path.stat().st_size / 1024 / 1024
        )

        stats = ImportStats()
        batch: list[dict[str, Any]] = []

        try:
            async with self.session_factory() as session, session.begin():
                for raw in iter_bulk_cards(path):
                    stats.processed += 1

                    fields = self._prepare(raw, options, stats)
                    if fields is not None:
                        batch.append(fields)
                        if len(batch) >= options.batch_size:
                            await self._flush(session, batch, stats)
                            batch = []

                    if stats.processed % PROGRESS_LOG_INTERVAL == 0:
                        logger.info(
                            "Import progress: %d processed, %d created, %d updated, "
                            "%d skipped, %d errors",
                            stats.processed,
                            stats.created,
                            stats.updated,
                            stats.skipped,
                            stats.errors,
                        )

                if batch:
                    await self._flush(session, batch, stats)
        except Exception as e:
            logger.error("Scryfall import from %s failed, rolled back: %s", source, e)
            raise ImportFailedError(source, str(e)) from e

        logger.info(
            "Scryfall import completed: %d processed, %d created, %d updated, "
            "%d skipped, %d errors (%.2f%% success)",
            stats.processed,
            stats.created,
            stats.updated,
            stats.skipped,
            stats.errors,
            stats.success_rate,
        )
        return stats

    def _prepare(
        self, raw: Any, options: ImportOptions, stats: ImportStats
    ) -> dict[str, Any] | None:
        """Filter and map one record. Returns None when it is skipped or fails."""
        if not isinstance(raw, dict) or raw.get("object", "") != "card":
            stats.skipped += 1
            return None

        # A layout of the wrong type is left for the mapper to reject
        layout = raw.get("layout", "")
        if isinstance(layout, str) and layout in options.skip_layouts:
            stats.skipped += 1
            return None

        try:
            return map_card(raw)
        except CardMappingError as e:
            stats.record_error(e.card_id, e.card_name, e.reason)
            logger.warning("Error processing card %s (%s): %s", e.card_id, e.card_name, e.reason)
            return None

    async def _flush(
        self, session: AsyncSession, batch: list[dict[str, Any]], stats: ImportStats
    ) -> None:
        result = await self.upserter.upsert(session, batch)
        stats.created += result.created
        stats.updated += result.updated
        # Written rows are flushed; drop them so only one batch is ever held
        session.expunge_all()
