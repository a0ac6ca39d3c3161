import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardkeeper.api.scryfall import get_scryfall_client
from cardkeeper.db.database import get_session, get_session_factory
from cardkeeper.main import app
from cardkeeper.models.db import Base
from cardkeeper.services.rate_limiter import RateLimiter
from cardkeeper.services.scryfall_client import ScryfallClient


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine, as the importers use it."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Provide an async test client bound to the test database."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_scryfall_client] = lambda: ScryfallClient(RateLimiter(0))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _scryfall_card(**overrides: Any) -> dict[str, Any]:
    """A minimal Scryfall card object; keyword arguments replace fields."""
    card: dict[str, Any] = {
        "object": "card",
        "id": "e3285e6b-3e79-4d7c-bf96-d920f973b80d",
        "oracle_id": "4457ed35-7c10-48c8-9776-456485fdf070",
        "name": "Lightning Bolt",
        "lang": "en",
        "released_at": "2020-08-07",
        "layout": "normal",
        "mana_cost": "{R}",
        "cmc": 1.0,
        "type_line": "Instant",
        "oracle_text": "Lightning Bolt deals 3 damage to any target.",
        "colors": ["R"],
        "color_identity": ["R"],
        "keywords": [],
        "legalities": {"modern": "legal", "standard": "not_legal"},
        "set": "2xm",
        "set_name": "Double Masters",
        "set_type": "masters",
        "collector_number": "141",
        "rarity": "uncommon",
        "image_uris": {"normal": "https://cards.scryfall.io/normal/front/bolt.jpg"},
        "finishes": ["nonfoil", "foil"],
        "foil": True,
        "nonfoil": True,
        "reprint": True,
        "prices": {"usd": "1.50"},
    }
    card.update(overrides)
    return card


def _numbered_cards(count: int, **overrides: Any) -> list[dict[str, Any]]:
    return [
        _scryfall_card(
            id=f"card-{i}",
            name=f"Test Card {i}",
            collector_number=str(i),
            **overrides,
        )
        for i in range(count)
    ]


@pytest.fixture
def make_card() -> Callable[..., dict[str, Any]]:
    """Factory for a Lightning Bolt card object; keyword arguments replace fields."""
    return _scryfall_card


@pytest.fixture
def make_cards() -> Callable[..., list[dict[str, Any]]]:
    """Factory for distinct printings with ids card-0, card-1, ..."""
    return _numbered_cards


@pytest.fixture
def write_bulk_file(tmp_path: Path) -> Callable[..., Path]:
    """Write records as a Scryfall bulk JSON array and return the path."""

    def _write(records: list[Any], name: str = "bulk.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(records), encoding="utf-8")
        return path

    return _write


MOXFIELD_HEADER = (
    '"Count","Tradelist Count","Name","Edition","Condition","Language","Foil",'
    '"Tags","Last Modified","Collector Number","Alter","Proxy","Purchase Price"'
)


@pytest.fixture
def moxfield_csv() -> str:
    """Moxfield export with three printings."""
    return "\n".join(
        [
            MOXFIELD_HEADER,
            '"4","0","Lightning Bolt","2xm","Near Mint","English","",'
            '"burn, staples","2024-01-05 10:00:00.000000","141","False","False","$1.50"',
            '"1","0","Sol Ring","c21","Lightly Played","English","foil",'
            '"","2024-01-05 10:00:00.000000","263","False","False",""',
            '"2","0","Counterspell","mh2","Mint","Japanese","",'
            '"","2024-01-05 10:00:00.000000","267","False","True","€2.00"',
        ]
    )


@pytest.fixture
def moxfield_header() -> str:
    return MOXFIELD_HEADER
