import asyncio
import logging
from typing import Optional

from tortoise import Tortoise, connections

from facetagger.config import Settings, settings as default_settings
from facetagger.errors import StoreError

_logger = logging.getLogger("facetagger.db")

MODELS = [
    "facetagger.models.face",
    "facetagger.models.relation",
]


def tortoise_url(url: str) -> str:
    """Normalize a DATABASE_URL for Tortoise ORM."""
    url = url.strip().strip('"').strip("'")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgres://", 1)
    if not url.startswith(("postgres://", "sqlite://")):
        raise ValueError("Unsupported DATABASE_URL; use postgres:// or sqlite://")
    return url


def build_tortoise_config(settings: Optional[Settings] = None) -> dict:
    settings = settings or default_settings
    return {
        "connections": {"default": tortoise_url(settings.DATABASE_URL)},
        "apps": {
            "models": {
                "models": MODELS,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


# Used by external tooling that expects a module-level config
TORTOISE_ORM = build_tortoise_config()


async def init_db(
    settings: Optional[Settings] = None,
    max_retries: int = 3,
    delay_seconds: float = 0.5,
) -> None:
    """Initialize the database with retry logic in the current event loop.

    Raises StoreError once the retries are exhausted so the caller (app startup
    or a worker job) fails instead of running against a missing store.
    """
    config = build_tortoise_config(settings)
    for attempt in range(1, max_retries + 1):
        try:
            await Tortoise.init(config=config)
            await Tortoise.generate_schemas(safe=True)
            _logger.info("Database initialized successfully")
            return
        except Exception as exc:
            if attempt == max_retries:
                raise StoreError("database unavailable", attempts=attempt) from exc
            _logger.info(
                "DB init failed (attempt %s/%s): %s; retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                delay_seconds,
            )
            await asyncio.sleep(delay_seconds)


async def close_db() -> None:
    """Close database connections in the current event loop."""
    await connections.close_all()
