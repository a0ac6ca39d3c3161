"""
Import Magic: The Gathering cards from Scryfall bulk data.

Usage:
    python -m cardkeeper.jobs.import_cards                      # latest default_cards
    python -m cardkeeper.jobs.import_cards --type oracle_cards
    python -m cardkeeper.jobs.import_cards ./default-cards.json --batch-size 500
    python -m cardkeeper.jobs.import_cards --list-bulk
    python -m cardkeeper.jobs.import_cards --stats
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Any

from cardkeeper.config import (
    BULK_DATA_TYPES,
    DEFAULT_BATCH_SIZE,
    DEFAULT_SKIP_LAYOUTS,
    MAX_BATCH_SIZE,
    MIN_BATCH_SIZE,
    settings,
)
from cardkeeper.db.database import async_session_factory, init_db
from cardkeeper.db.operations import get_card_stats
from cardkeeper.services.errors import CardImportError
from cardkeeper.services.scryfall_client import BulkDataCatalog, ScryfallClient
from cardkeeper.services.scryfall_import import ImportOptions, ScryfallImporter

logger = logging.getLogger(__name__)

# Errors printed after an import; the rest are summarized
MAX_PRINTED_ERRORS = 10


def print_results(result: dict[str, Any]) -> None:
    """Print an import summary and the first few failed cards."""
    print("\n=== Import Results ===")
    print(f"Processed: {result['processed']:,}")
    print(f"Created: {result['created']:,}")
    print(f"Updated: {result['updated']:,}")
    print(f"Skipped: {result['skipped']:,}")
    print(f"Errors: {result['errors']:,}")
    print(f"Success rate: {result['success_rate']}%")

    error_log = result["error_log"]
    if result["errors"] > 0 and error_log:
        print("\nErrors encountered:")
        for error in error_log[:MAX_PRINTED_ERRORS]:
            print(f"  {error['card_name'] or 'Unknown'}: {error['error']}")
        if len(error_log) > MAX_PRINTED_ERRORS:
            print(f"  ... and {len(error_log) - MAX_PRINTED_ERRORS} more errors")

    if result["processed"] > 0:
        print("\nImport completed successfully!")


def print_stats(stats: dict[str, Any]) -> None:
    print("\n=== Scryfall Import Statistics ===")
    print(f"Total cards: {stats['total_cards']:,}")
    print(f"Scryfall cards: {stats['scryfall_cards']:,}")
    print(f"Manual cards: {stats['manual_cards']:,}")
    print(f"Unique sets: {stats['unique_sets']:,}")
    print(f"Latest set: {stats['latest_set'] or 'N/A'}")

    if stats["rarity_breakdown"]:
        print("\nRarity Breakdown:")
        for rarity, count in stats["rarity_breakdown"].items():
            print(f"  {rarity.capitalize()}: {count:,}")


def print_bulk_data(entries: list[dict[str, Any]]) -> None:
    print("\n=== Available Scryfall Bulk Data ===")
    print(f"{'Type':<20} {'Name':<24} {'Size (MB)':>10}  Updated")
    for entry in entries:
        size_mb = round(entry["size"] / 1024 / 1024, 1)
        updated = entry["updated_at"]
        try:
            updated = datetime.fromisoformat(updated).strftime("%Y-%m-%d %H:%M")
        except (TypeError, ValueError):
            pass
        print(f"{entry['type']:<20} {entry['name']:<24} {size_mb:>10}  {updated}")
    print("\nTo import a specific type, use: --type TYPE")


async def run_import(
    source: str | None,
    data_type: str,
    options: ImportOptions,
) -> dict[str, Any]:
    """Create tables if needed, then run one Scryfall import."""
    await init_db()
    importer = ScryfallImporter(async_session_factory)
    stats = await importer.run(source, options, data_type=data_type)
    return stats.to_dict()


async def fetch_stats() -> dict[str, Any]:
    await init_db()
    async with async_session_factory() as session:
        return await get_card_stats(session)


async def fetch_bulk_data() -> list[dict[str, Any]]:
    catalog = BulkDataCatalog(ScryfallClient())
    return [entry.to_dict() for entry in await catalog.list_available()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import Magic: The Gathering cards from Scryfall bulk data"
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Bulk data URL or file path (default: latest file of --type)",
    )
    parser.add_argument(
        "--type",
        dest="data_type",
        default=settings.scryfall_default_bulk_type,
        choices=BULK_DATA_TYPES,
        help=f"Bulk data type to import (default: {settings.scryfall_default_bulk_type})",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Cards per batch, {MIN_BATCH_SIZE}-{MAX_BATCH_SIZE} (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--skip-layouts",
        action="append",
        default=[],
        metavar="LAYOUT",
        help="Card layout to skip; repeat for several (default: "
        + ", ".join(sorted(DEFAULT_SKIP_LAYOUTS))
        + ")",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show card catalog statistics and exit",
    )
    parser.add_argument(
        "--list-bulk",
        action="store_true",
        help="List available Scryfall bulk data downloads and exit",
    )
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit status."""
    args = build_parser().parse_args(argv)

    try:
        if args.stats:
            print_stats(asyncio.run(fetch_stats()))
            return 0

        if args.list_bulk:
            print_bulk_data(asyncio.run(fetch_bulk_data()))
            return 0

        if not MIN_BATCH_SIZE <= args.batch_size <= MAX_BATCH_SIZE:
            print(
                f"Batch size must be between {MIN_BATCH_SIZE} and {MAX_BATCH_SIZE}",
                file=sys.stderr,
            )
            return 1

        options = ImportOptions(batch_size=args.batch_size)
        if args.skip_layouts:
            options = ImportOptions(
                skip_layouts=frozenset(args.skip_layouts), batch_size=args.batch_size
            )
            print(f"Skipping layouts: {', '.join(args.skip_layouts)}")

        print(f"Source: {args.source or f'latest {args.data_type}'}")
        print(f"Batch size: {args.batch_size}")

        result = asyncio.run(run_import(args.source, args.data_type, options))
        print_results(result)
        return 0

    except (CardImportError, FileNotFoundError) as e:
        logger.error("Import failed: %s", e)
        print(f"Import failed: {e}", file=sys.stderr)
        return 1


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(run())


if __name__ == "__main__":
    main()
