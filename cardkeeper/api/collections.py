"""
Collection API endpoints.

Collections hold a user's owned card instances.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.api.card_instances import CardInstanceResponse, instance_to_response
from cardkeeper.db import (
    create_collection,
    delete_collection,
    get_collection,
    list_collection_instances,
    list_collections,
    update_collection,
)
from cardkeeper.db.database import get_session
from cardkeeper.models.db import CollectionDB

router = APIRouter(prefix="/collections", tags=["collections"])


class CollectionCreateRequest(BaseModel):
    """Request model for creating a collection."""

    user_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255, examples=["Main binder"])
    description: str | None = None


class CollectionUpdateRequest(BaseModel):
    """Request model for renaming or describing a collection. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("name cannot be null")
        return v


class CollectionResponse(BaseModel):
    """Response model for a collection."""

    id: int
    user_id: str
    name: str
    description: str | None = None


class CollectionInstancesResponse(BaseModel):
    collection_id: int
    instances: list[CardInstanceResponse]
    count: int


def _to_response(collection: CollectionDB) -> CollectionResponse:
    return CollectionResponse(
        id=collection.id,
        user_id=collection.user_id,
        name=collection.name,
        description=collection.description,
    )


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_user_collection(
    request: CollectionCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    collection = await create_collection(
        session, request.user_id, request.name, request.description
    )
    return _to_response(collection)


@router.get("", response_model=list[CollectionResponse])
async def get_collections(
    session: Annotated[AsyncSession, Depends(get_session)],
    user_id: Annotated[str | None, Query()] = None,
) -> list[CollectionResponse]:
    """List collections, optionally only those of one user."""
    return [_to_response(c) for c in await list_collections(session, user_id)]


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_user_collection(
    collection_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    collection = await get_collection(session, collection_id)
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection {collection_id} not found",
        )
    return _to_response(collection)


@router.put("/{collection_id}", response_model=CollectionResponse)
@router.patch("/{collection_id}", response_model=CollectionResponse)
async def update_user_collection(
    collection_id: int,
    request: CollectionUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    """Update the fields present in the request body."""
    collection = await get_collection(session, collection_id)
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection {collection_id} not found",
        )

    await update_collection(session, collection, request.model_dump(exclude_unset=True))
    return _to_response(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_collection(
    collection_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete a collection together with every card instance in it."""
    if not await delete_collection(session, collection_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection {collection_id} not found",
        )


@router.get("/{collection_id}/card-instances", response_model=CollectionInstancesResponse)
async def get_collection_instances(
    collection_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    available_only: bool = False,
) -> CollectionInstancesResponse:
    """List the copies in a collection; ``available_only`` hides copies placed in decks."""
    if await get_collection(session, collection_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection {collection_id} not found",
        )

    instances = await list_collection_instances(
        session, collection_id, available_only=available_only
    )
    return CollectionInstancesResponse(
        collection_id=collection_id,
        instances=[instance_to_response(i) for i in instances],
        count=len(instances),
    )
