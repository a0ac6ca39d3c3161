from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Cardkeeper"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cardkeeper"

    scryfall_bulk_data_url: str = "https://api.scryfall.com/bulk-data"
    scryfall_default_bulk_type: str = "default_cards"

    # Scryfall asks for 50-100ms between requests (10 requests/second max)
    scryfall_rate_limit_ms: int = 100
    scryfall_request_timeout: float = 30.0
    scryfall_download_timeout: float = 600.0


settings = Settings()


# =============================================================================
# IMPORT LIMITS
# =============================================================================

DEFAULT_BATCH_SIZE = 1000
MIN_BATCH_SIZE = 100
MAX_BATCH_SIZE = 5000

# Layouts that are not real printings of a card
DEFAULT_SKIP_LAYOUTS = frozenset({"token", "emblem", "planar", "scheme", "vanguard"})

# Bulk data types accepted by the auto-import endpoint and CLI
BULK_DATA_TYPES = ("default_cards", "oracle_cards", "unique_artwork", "all_cards")

# Per-record errors kept in the stats preview (the error counter is unbounded)
ERROR_LOG_LIMIT = 100

PROGRESS_LOG_INTERVAL = 10_000
