"""
Deck API endpoints.

Decks are built from the card instances a user owns.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.api.card_instances import CardInstanceResponse, instance_to_response
from cardkeeper.db import (
    DeckOwnershipError,
    assign_instance_to_deck,
    create_deck,
    delete_deck,
    get_card_instance,
    get_deck,
    list_deck_instances,
    list_decks,
    remove_instance_from_deck,
    update_deck,
)
from cardkeeper.db.database import get_session
from cardkeeper.models.db import CardInstanceDB, DeckDB

router = APIRouter(prefix="/decks", tags=["decks"])


class DeckCreateRequest(BaseModel):
    """Request model for creating a deck."""

    user_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    format: str | None = Field(default=None, max_length=50, examples=["commander"])


class DeckUpdateRequest(BaseModel):
    """Request model for editing a deck. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    format: str | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("name cannot be null")
        return v


class DeckResponse(BaseModel):
    """Response model for a single deck."""

    id: int
    user_id: str
    name: str
    description: str | None = None
    format: str | None = None


class DeckInstancesResponse(BaseModel):
    deck_id: int
    instances: list[CardInstanceResponse]
    count: int


def _to_response(deck: DeckDB) -> DeckResponse:
    return DeckResponse(
        id=deck.id,
        user_id=deck.user_id,
        name=deck.name,
        description=deck.description,
        format=deck.format,
    )


async def _get_deck_or_404(session: AsyncSession, deck_id: int) -> DeckDB:
    deck = await get_deck(session, deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck {deck_id} not found",
        )
    return deck


async def _get_instance_or_404(session: AsyncSession, instance_id: int) -> CardInstanceDB:
    instance = await get_card_instance(session, instance_id)
    if instance is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card instance {instance_id} not found",
        )
    return instance


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def create_user_deck(
    request: DeckCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    deck = await create_deck(
        session, request.user_id, request.name, request.description, request.format
    )
    return _to_response(deck)


@router.get("", response_model=list[DeckResponse])
async def get_decks(
    session: Annotated[AsyncSession, Depends(get_session)],
    user_id: Annotated[str | None, Query()] = None,
) -> list[DeckResponse]:
    return [_to_response(d) for d in await list_decks(session, user_id)]


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_user_deck(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    return _to_response(await _get_deck_or_404(session, deck_id))


@router.put("/{deck_id}", response_model=DeckResponse)
@router.patch("/{deck_id}", response_model=DeckResponse)
async def update_user_deck(
    deck_id: int,
    request: DeckUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckResponse:
    """Update the fields present in the request body."""
    deck = await _get_deck_or_404(session, deck_id)
    await update_deck(session, deck, request.model_dump(exclude_unset=True))
    return _to_response(deck)


@router.delete("/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_deck(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete a deck. Its card instances become available again."""
    if not await delete_deck(session, deck_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck {deck_id} not found",
        )


@router.get("/{deck_id}/card-instances", response_model=DeckInstancesResponse)
async def get_deck_instances(
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckInstancesResponse:
    await _get_deck_or_404(session, deck_id)

    instances = await list_deck_instances(session, deck_id)
    return DeckInstancesResponse(
        deck_id=deck_id,
        instances=[instance_to_response(i) for i in instances],
        count=len(instances),
    )


@router.post("/{deck_id}/add-card-instance/{instance_id}", response_model=CardInstanceResponse)
async def add_card_instance(
    deck_id: int,
    instance_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    """
    Put an available card instance into this deck.

    Returns 409 if the instance already sits in another deck, or if the deck
    belongs to a different user than the instance's collection. Adding an
    instance to the deck it is already in changes nothing.
    """
    deck = await _get_deck_or_404(session, deck_id)
    instance = await _get_instance_or_404(session, instance_id)

    if instance.deck_id is not None and instance.deck_id != deck.id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Card instance {instance_id} is already in deck {instance.deck_id}",
        )

    try:
        await assign_instance_to_deck(session, instance, deck)
    except DeckOwnershipError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return instance_to_response(instance)


@router.delete(
    "/{deck_id}/remove-card-instance/{instance_id}", response_model=CardInstanceResponse
)
async def remove_card_instance(
    deck_id: int,
    instance_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    """Take a card instance out of this deck; 409 if it is not in this deck."""
    await _get_deck_or_404(session, deck_id)
    instance = await _get_instance_or_404(session, instance_id)

    if instance.deck_id != deck_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Card instance {instance_id} is not in deck {deck_id}",
        )

    await remove_instance_from_deck(session, instance)
    return instance_to_response(instance)
