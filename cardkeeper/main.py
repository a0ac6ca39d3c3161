from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardkeeper.api import (
    card_instances_router,
    cards_router,
    collections_router,
    decks_router,
    health_router,
    imports_router,
    scryfall_router,
)
from cardkeeper.config import settings
from cardkeeper.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables on startup."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardkeeper"),
    lifespan=lifespan,
)

app.include_router(cards_router)
app.include_router(card_instances_router)
app.include_router(collections_router)
app.include_router(decks_router)
app.include_router(imports_router)
app.include_router(scryfall_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
