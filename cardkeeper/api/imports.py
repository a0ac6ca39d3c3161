"""
Collection import API endpoints.

Accepts Moxfield CSV exports as multipart uploads and imports them into an
existing collection.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardkeeper.db import get_collection
from cardkeeper.db.database import get_session_factory
from cardkeeper.parsers.moxfield import (
    OPTIONAL_COLUMNS,
    REQUIRED_COLUMNS,
    validate_moxfield_header,
)
from cardkeeper.services.moxfield_import import MoxfieldImporter

router = APIRouter(tags=["import"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class ImportFormat(BaseModel):
    """One supported collection import format."""

    name: str
    description: str
    endpoint: str
    required_columns: list[str]
    optional_columns: list[str]
    file_requirements: dict[str, str]


class ImportFormatsResponse(BaseModel):
    formats: list[ImportFormat]


@router.post(
    "/collections/{collection_id}/import/moxfield",
    responses={206: {"description": "Import completed with some errors"}},
)
async def import_moxfield(
    collection_id: int,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    csv_file: Annotated[UploadFile, File(description="Moxfield CSV export file")],
) -> JSONResponse:
    """
    Import a Moxfield CSV export into a collection.

    Returns 206 when some rows could not be imported; those rows are listed
    in ``stats.errors`` and every other row is kept.
    """
    async with session_factory() as session:
        collection = await get_collection(session, collection_id)
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection {collection_id} not found",
        )

    content = await csv_file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be 10MB or smaller",
        )

    try:
        csv_text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded",
        ) from e

    if not validate_moxfield_header(csv_text):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Moxfield CSV format: the file does not appear to be a Moxfield export",
        )

    stats = await MoxfieldImporter(session_factory).run(csv_text, collection_id)

    body: dict[str, Any] = {
        "message": (
            "Import completed with some errors"
            if stats.has_errors
            else "Import completed successfully"
        ),
        "stats": stats.to_dict(),
    }
    return JSONResponse(
        content=body,
        status_code=status.HTTP_206_PARTIAL_CONTENT if stats.has_errors else status.HTTP_200_OK,
    )


@router.get("/import/formats", response_model=ImportFormatsResponse)
async def get_import_formats() -> ImportFormatsResponse:
    """List supported collection import formats and their columns."""
    return ImportFormatsResponse(
        formats=[
            ImportFormat(
                name="Moxfield",
                description="Import from Moxfield CSV export",
                endpoint="/collections/{id}/import/moxfield",
                required_columns=list(REQUIRED_COLUMNS),
                optional_columns=list(OPTIONAL_COLUMNS),
                file_requirements={"format": "CSV", "max_size": "10MB", "encoding": "UTF-8"},
            )
        ]
    )
