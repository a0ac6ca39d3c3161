"""
Scryfall import API endpoints.

Triggers bulk imports from a URL, a local file or the latest manifest entry,
and reports catalog statistics.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardkeeper.config import (
    BULK_DATA_TYPES,
    DEFAULT_BATCH_SIZE,
    MAX_BATCH_SIZE,
    MIN_BATCH_SIZE,
    settings,
)
from cardkeeper.db import get_card_stats
from cardkeeper.db.database import get_session, get_session_factory
from cardkeeper.services.errors import CardImportError
from cardkeeper.services.scryfall_client import BulkDataCatalog, ScryfallClient
from cardkeeper.services.scryfall_import import ImportOptions, ScryfallImporter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scryfall", tags=["scryfall"])


def get_scryfall_client() -> ScryfallClient:
    """Dependency that provides the Scryfall client."""
    return ScryfallClient()


class ImportOptionsRequest(BaseModel):
    """Import tuning shared by both import endpoints."""

    skip_layouts: list[str] | None = Field(
        default=None,
        description="Card layouts to skip; replaces the default list when given",
        examples=[["token", "emblem", "planar"]],
    )
    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        description=f"Cards per batch ({MIN_BATCH_SIZE}-{MAX_BATCH_SIZE})",
    )


class ImportRequest(BaseModel):
    """Request model for importing from an explicit source."""

    source: str = Field(
        ...,
        description="URL of a Scryfall bulk data file or a local file path",
        examples=["https://data.scryfall.io/default-cards/default-cards-20240101210000.json"],
    )
    options: ImportOptionsRequest = Field(default_factory=ImportOptionsRequest)


class AutoImportRequest(BaseModel):
    """Request model for importing the latest bulk file of a type."""

    data_type: str = Field(default=settings.scryfall_default_bulk_type)
    options: ImportOptionsRequest = Field(default_factory=ImportOptionsRequest)


class ImportResultResponse(BaseModel):
    """Statistics of a finished import."""

    processed: int
    created: int
    updated: int
    skipped: int
    errors: int
    error_log: list[dict[str, str]] = Field(default_factory=list)
    success_rate: float
    data_type: str | None = None
    download_url: str | None = None


class ImportResponse(BaseModel):
    message: str
    data: ImportResultResponse


class BulkDataResponse(BaseModel):
    message: str
    data: list[dict[str, Any]]


class CardStatsResponse(BaseModel):
    """Card catalog summary."""

    total_cards: int
    scryfall_cards: int
    manual_cards: int
    unique_sets: int
    latest_set: str | None = None
    rarity_breakdown: dict[str, int] = Field(default_factory=dict)


def _to_options(request: ImportOptionsRequest) -> ImportOptions:
    if not MIN_BATCH_SIZE <= request.batch_size <= MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"batch_size must be between {MIN_BATCH_SIZE} and {MAX_BATCH_SIZE}",
        )

    if request.skip_layouts is None:
        return ImportOptions(batch_size=request.batch_size)
    return ImportOptions(
        skip_layouts=frozenset(request.skip_layouts), batch_size=request.batch_size
    )


async def _run_import(importer: ScryfallImporter, source: str, options: ImportOptions) -> dict:
    try:
        stats = await importer.run(source, options)
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Source file not found: {source}",
        ) from e
    except CardImportError as e:
        logger.error("Scryfall import from %s failed: %s", source, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Import failed: {e}",
        ) from e
    return stats.to_dict()


@router.post("/import", response_model=ImportResponse)
async def import_cards(
    request: ImportRequest,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
) -> ImportResponse:
    """
    Import cards from a Scryfall bulk data URL or local file.

    The import runs in a single transaction: on failure nothing is written.
    """
    options = _to_options(request.options)
    logger.info("Starting Scryfall import via API from %s", request.source)

    importer = ScryfallImporter(session_factory, client=client)
    result = await _run_import(importer, request.source, options)

    return ImportResponse(
        message="Import completed successfully",
        data=ImportResultResponse(**result),
    )


@router.post("/import/auto", response_model=ImportResponse)
async def auto_import_cards(
    request: AutoImportRequest,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
) -> ImportResponse:
    """Download and import the latest bulk file of the requested type."""
    if request.data_type not in BULK_DATA_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid data_type: {request.data_type}. Valid: {list(BULK_DATA_TYPES)}",
        )
    options = _to_options(request.options)

    try:
        download_url = await BulkDataCatalog(client).resolve_url(request.data_type)
    except CardImportError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Auto-import failed: {e}",
        ) from e

    logger.info("Starting Scryfall auto-import of %s from %s", request.data_type, download_url)

    importer = ScryfallImporter(session_factory, client=client)
    result = await _run_import(importer, download_url, options)

    return ImportResponse(
        message="Auto-import completed successfully",
        data=ImportResultResponse(
            **result, data_type=request.data_type, download_url=download_url
        ),
    )


@router.get("/bulk-data", response_model=BulkDataResponse)
async def get_bulk_data(
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
) -> BulkDataResponse:
    """List the bulk data downloads Scryfall currently offers."""
    try:
        entries = await BulkDataCatalog(client).list_available()
    except CardImportError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve bulk data information: {e}",
        ) from e

    return BulkDataResponse(
        message="Bulk data retrieved successfully",
        data=[entry.to_dict() for entry in entries],
    )


@router.get("/stats", response_model=CardStatsResponse)
async def get_import_stats(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardStatsResponse:
    """Summarize the imported card catalog."""
    return CardStatsResponse(**await get_card_stats(session))
