"""
MealMate - Supabase Client.

One client per process, built on first use from SUPABASE_URL and
SUPABASE_ANON_KEY. Local runs without those settings use the in-memory
store and never reach this module.
"""

import logging

from supabase import Client, create_client

from mealmate.config import settings
from mealmate.errors import PersistenceError

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_client() -> Client:
    """
    Shared Supabase client.

    Raises:
        PersistenceError: Supabase is not configured, or the client
            could not be created
    """
    global _client

    if _client is not None:
        return _client

    if not settings.has_supabase:
        raise PersistenceError(
            "Supabase is not configured: set SUPABASE_URL and SUPABASE_ANON_KEY",
            user_message="Cloud sync is not set up. Your data can't be saved right now.",
        )

    try:
        _client = create_client(settings.supabase_url, settings.supabase_anon_key)
    except Exception as e:
        logger.error(f"Could not create Supabase client: {e}")
        raise PersistenceError(f"Could not create Supabase client: {e}") from e

    logger.info(f"Connected to Supabase at {settings.supabase_url}")
    return _client


def reset_client() -> None:
    """Drop the cached client so the next call rebuilds it from settings."""
    global _client
    _client = None
