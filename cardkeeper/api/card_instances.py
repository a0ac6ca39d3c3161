"""
Card instance API endpoints.

A card instance is one physical copy of a card in a collection. It can be
placed in at most one deck belonging to the same user.
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.db import (
    DeckOwnershipError,
    assign_instance_to_deck,
    create_card_instance,
    delete_card_instance,
    get_card,
    get_card_instance,
    get_collection,
    get_deck,
    remove_instance_from_deck,
    update_card_instance,
)
from cardkeeper.db.database import get_session
from cardkeeper.models.db import CardCondition, CardInstanceDB

router = APIRouter(prefix="/card-instances", tags=["card-instances"])


class CardInstanceCreateRequest(BaseModel):
    """Request model for adding a copy of a card to a collection."""

    card_id: int
    collection_id: int
    condition: CardCondition = CardCondition.NEAR_MINT
    foil: bool = False
    language: str = "English"
    tags: list[str] | None = None
    purchase_price: Decimal | None = Field(default=None, ge=0)
    alter: bool = False
    proxy: bool = False


class CardInstanceUpdateRequest(BaseModel):
    """
    Request model for editing an owned copy. Omitted fields are kept.

    Only ``tags`` and ``purchase_price`` may be cleared with null.
    """

    condition: CardCondition | None = None
    foil: bool | None = None
    language: str | None = Field(default=None, min_length=1, max_length=50)
    tags: list[str] | None = None
    purchase_price: Decimal | None = Field(default=None, ge=0)
    alter: bool | None = None
    proxy: bool | None = None

    @field_validator("condition", "foil", "language", "alter", "proxy")
    @classmethod
    def not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("field cannot be null")
        return v


class CardInstanceResponse(BaseModel):
    """Response model for a card instance."""

    id: int
    card_id: int
    card_title: str
    collection_id: int
    deck_id: int | None = None
    condition: CardCondition
    foil: bool
    language: str
    tags: list[str] | None = None
    purchase_price: Decimal | None = None
    alter: bool
    proxy: bool
    is_available: bool


def instance_to_response(instance: CardInstanceDB) -> CardInstanceResponse:
    """Build the response for an instance whose card is loaded."""
    return CardInstanceResponse(
        id=instance.id,
        card_id=instance.card_id,
        card_title=instance.card.title,
        collection_id=instance.collection_id,
        deck_id=instance.deck_id,
        condition=instance.condition,
        foil=instance.foil,
        language=instance.language,
        tags=instance.tags,
        purchase_price=instance.purchase_price,
        alter=instance.alter,
        proxy=instance.proxy,
        is_available=instance.is_available,
    )


async def _get_instance_or_404(session: AsyncSession, instance_id: int) -> CardInstanceDB:
    instance = await get_card_instance(session, instance_id)
    if instance is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card instance {instance_id} not found",
        )
    return instance


@router.post("", response_model=CardInstanceResponse, status_code=status.HTTP_201_CREATED)
async def create_instance(
    request: CardInstanceCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    """Add one copy of a card to a collection."""
    if await get_card(session, request.card_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {request.card_id} not found",
        )
    if await get_collection(session, request.collection_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection {request.collection_id} not found",
        )

    instance = await create_card_instance(
        session,
        card_id=request.card_id,
        collection_id=request.collection_id,
        condition=request.condition,
        foil=request.foil,
        language=request.language,
        tags=request.tags,
        purchase_price=request.purchase_price,
        alter=request.alter,
        proxy=request.proxy,
    )
    return instance_to_response(await _get_instance_or_404(session, instance.id))


@router.get("/{instance_id}", response_model=CardInstanceResponse)
async def get_instance(
    instance_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    return instance_to_response(await _get_instance_or_404(session, instance_id))


@router.put("/{instance_id}", response_model=CardInstanceResponse)
@router.patch("/{instance_id}", response_model=CardInstanceResponse)
async def update_instance(
    instance_id: int,
    request: CardInstanceUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    """Update condition, finish, language, tags, price or alter/proxy flags."""
    instance = await _get_instance_or_404(session, instance_id)
    await update_card_instance(session, instance, request.model_dump(exclude_unset=True))
    return instance_to_response(instance)


@router.delete("/{instance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_instance(
    instance_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    if not await delete_card_instance(session, instance_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card instance {instance_id} not found",
        )


@router.put("/{instance_id}/move-to-deck/{deck_id}", response_model=CardInstanceResponse)
async def move_to_deck(
    instance_id: int,
    deck_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    """
    Place a card instance in a deck.

    Returns 409 if the deck belongs to a different user than the collection
    that owns the instance.
    """
    instance = await _get_instance_or_404(session, instance_id)
    deck = await get_deck(session, deck_id)
    if deck is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck {deck_id} not found",
        )

    try:
        await assign_instance_to_deck(session, instance, deck)
    except DeckOwnershipError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return instance_to_response(instance)


@router.put("/{instance_id}/remove-from-deck", response_model=CardInstanceResponse)
async def remove_from_deck(
    instance_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardInstanceResponse:
    """Return a card instance to its collection's available pool."""
    instance = await _get_instance_or_404(session, instance_id)
    await remove_instance_from_deck(session, instance)
    return instance_to_response(instance)
