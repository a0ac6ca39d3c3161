"""
Card catalog API endpoints.
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from cardkeeper.db import (
    create_card,
    delete_card,
    get_card,
    get_card_by_printing,
    list_cards,
    update_card,
)
from cardkeeper.db.database import get_session
from cardkeeper.models.db import CardDB
from cardkeeper.parsers.scryfall import parse_stat

router = APIRouter(prefix="/cards", tags=["cards"])


class CardCreateRequest(BaseModel):
    """
    Request model for entering a card by hand.

    Power and toughness are given as printed ("3", "*", "1+*"); the integer
    columns are filled in when the text is a plain number.
    """

    title: str = Field(..., min_length=1, max_length=200, examples=["Lightning Bolt"])
    type: str = Field(..., min_length=1, max_length=100, examples=["Instant"])
    subtype: str | None = Field(default=None, max_length=200)
    cost: str | None = Field(default=None, max_length=100)
    description: str | None = None
    power_text: str | None = Field(default=None, max_length=20)
    toughness_text: str | None = Field(default=None, max_length=20)
    edition: str | None = Field(default=None, max_length=100)
    collector_number: str | None = Field(default=None, max_length=20)
    image_url: str | None = None
    set_code: str | None = Field(default=None, max_length=20)
    set_name: str | None = Field(default=None, max_length=100)
    rarity: str | None = Field(default=None, max_length=30)
    cmc: float | None = Field(default=None, ge=0)
    colors: list[str] | None = None


class CardUpdateRequest(BaseModel):
    """Request model for correcting a card. Omitted fields are kept."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    type: str | None = Field(default=None, min_length=1, max_length=100)
    subtype: str | None = Field(default=None, max_length=200)
    cost: str | None = Field(default=None, max_length=100)
    description: str | None = None
    power_text: str | None = Field(default=None, max_length=20)
    toughness_text: str | None = Field(default=None, max_length=20)
    edition: str | None = Field(default=None, max_length=100)
    collector_number: str | None = Field(default=None, max_length=20)
    image_url: str | None = None
    set_code: str | None = Field(default=None, max_length=20)
    set_name: str | None = Field(default=None, max_length=100)
    rarity: str | None = Field(default=None, max_length=30)
    cmc: float | None = Field(default=None, ge=0)
    colors: list[str] | None = None

    @field_validator("title", "type")
    @classmethod
    def not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("field cannot be null")
        return v


class CardResponse(BaseModel):
    """Response model for a card printing."""

    id: int
    title: str
    type: str
    subtype: str | None = None
    cost: str | None = None
    description: str | None = None
    power: int | None = None
    toughness: int | None = None
    power_text: str | None = None
    toughness_text: str | None = None
    edition: str | None = None
    collector_number: str | None = None
    image_url: str | None = None
    scryfall_id: str | None = None
    oracle_id: str | None = None
    set_code: str | None = None
    set_name: str | None = None
    rarity: str | None = None
    type_line: str | None = None
    mana_cost: str | None = None
    cmc: float | None = None
    colors: list[str] | None = None
    layout: str | None = None
    released_at: date | None = None


def card_to_response(card: CardDB) -> CardResponse:
    return CardResponse(
        id=card.id,
        title=card.title,
        type=card.type,
        subtype=card.subtype,
        cost=card.cost,
        description=card.description,
        power=card.power,
        toughness=card.toughness,
        power_text=card.power_text,
        toughness_text=card.toughness_text,
        edition=card.edition,
        collector_number=card.collector_number,
        image_url=card.image_url,
        scryfall_id=card.scryfall_id,
        oracle_id=card.oracle_id,
        set_code=card.set_code,
        set_name=card.set_name,
        rarity=card.rarity,
        type_line=card.type_line,
        mana_cost=card.mana_cost,
        cmc=card.cmc,
        colors=card.colors,
        layout=card.layout,
        released_at=card.released_at,
    )


def _with_stats(fields: dict) -> dict:
    """Derive the integer power/toughness columns from any text given."""
    for stat in ("power", "toughness"):
        if f"{stat}_text" in fields:
            fields[stat] = parse_stat(fields[f"{stat}_text"])
    return fields


def _printing_conflict(
    title: str, edition: str | None, collector_number: str | None
) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=(
            f"Card '{title}' already exists for edition {edition!r}, "
            f"collector number {collector_number!r}"
        ),
    )


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_manual_card(
    request: CardCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardResponse:
    """
    Add a card that is not (or not yet) in the Scryfall catalog.

    Returns 409 if the same title, edition and collector number is stored.
    """
    existing = await get_card_by_printing(
        session, request.title, request.edition, request.collector_number
    )
    if existing is not None:
        raise _printing_conflict(request.title, request.edition, request.collector_number)

    card = await create_card(session, _with_stats(request.model_dump()))
    return card_to_response(card)


@router.get("", response_model=list[CardResponse])
async def search_cards(
    session: Annotated[AsyncSession, Depends(get_session)],
    title: Annotated[str | None, Query(description="Case-insensitive title substring")] = None,
    set_code: Annotated[str | None, Query(alias="set")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[CardResponse]:
    """List cards ordered by title."""
    cards = await list_cards(session, title=title, set_code=set_code, limit=limit, offset=offset)
    return [card_to_response(card) for card in cards]


@router.get("/{card_id}", response_model=CardResponse)
async def get_card_by_id(
    card_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardResponse:
    card = await get_card(session, card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )
    return card_to_response(card)


@router.put("/{card_id}", response_model=CardResponse)
@router.patch("/{card_id}", response_model=CardResponse)
async def update_card_by_id(
    card_id: int,
    request: CardUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardResponse:
    """
    Update the fields present in the request body.

    Returns 409 if the change would make the card collide with another
    printing. A later Scryfall import overwrites imported fields again.
    """
    card = await get_card(session, card_id)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )

    changes = _with_stats(request.model_dump(exclude_unset=True))
    title = changes.get("title", card.title)
    edition = changes.get("edition", card.edition)
    collector_number = changes.get("collector_number", card.collector_number)
    existing = await get_card_by_printing(session, title, edition, collector_number)
    if existing is not None and existing.id != card.id:
        raise _printing_conflict(title, edition, collector_number)

    await update_card(session, card, changes)
    return card_to_response(card)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card_by_id(
    card_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> None:
    """Delete a card and every owned copy of it."""
    if not await delete_card(session, card_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found",
        )
