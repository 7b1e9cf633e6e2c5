"""
MealMate - Quota Tracker.

Gates calls to the recipe provider under a tiered per-minute budget. The
provider enforces its quota per API key, not per request, so one tracker
instance is shared by everything that talks to the provider.

Window semantics:
- The counter resets to zero once 60s have passed since the last reset,
  and the window restarts at that moment. This is a fixed window keyed to
  the last reset, not a true sliding window.
- Limit is the upgraded tier when a validated user key is present,
  otherwise the base tier.

State is persisted locally after every mutation and rehydrated at startup.
"""

import asyncio
import logging
import math
import time
from datetime import UTC, datetime
from typing import Callable

from mealmate.auth import IdentityProvider
from mealmate.config import settings
from mealmate.db import API_KEYS, DocumentStore, QuotaStateFile
from mealmate.errors import PersistenceError
from mealmate.models import QuotaState

logger = logging.getLogger(__name__)

# Keys shorter than this are rejected without asking the provider
MIN_KEY_LENGTH = 11

KEY_STATUS_VALID = "valid"
KEY_STATUS_INVALID = "invalid"


class QuotaTracker:
    """Per-minute call accounting for the recipe provider."""

    def __init__(
        self,
        state_file: QuotaStateFile | None = None,
        *,
        store: DocumentStore | None = None,
        identity: IdentityProvider | None = None,
        base_limit: int | None = None,
        upgraded_limit: int | None = None,
        window_seconds: int | None = None,
        default_api_key: str | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.state_file = state_file
        self.store = store
        self.identity = identity
        self.base_limit = base_limit if base_limit is not None else settings.quota_base_limit
        self.upgraded_limit = upgraded_limit if upgraded_limit is not None else settings.quota_upgraded_limit
        self.window_seconds = window_seconds if window_seconds is not None else settings.quota_window_seconds
        self.default_api_key = default_api_key if default_api_key is not None else settings.recipe_api_key
        self._clock = clock
        self._lock = asyncio.Lock()
        self.state = QuotaState(last_reset_time=clock())

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Rehydrate from the local record and pick up a stored upgraded key.

        Never raises - a tracker that failed to load starts from a fresh window.
        """
        async with self._lock:
            try:
                if self.state_file is not None:
                    stored = await self.state_file.load()
                    if stored is not None:
                        self.state = stored
                        self._reset_if_window_elapsed()

                await self._load_remote_key()
                await self._persist()
            except Exception as e:
                logger.error(f"Error initializing quota tracker: {e}")

    async def _load_remote_key(self) -> None:
        user_id = self.identity.current_user() if self.identity else None
        if self.store is None or not user_id:
            return

        record = await self.store.get(user_id, API_KEYS)
        if record and record.get("providerApiKey") and record.get("keyStatus") == KEY_STATUS_VALID:
            self.state.user_api_key = record["providerApiKey"]
            self.state.has_custom_key = True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def limit(self) -> int:
        return self.upgraded_limit if self.state.has_custom_key else self.base_limit

    async def can_call(self) -> bool:
        """True if a call fits in the current window. Resets a lapsed window first."""
        async with self._lock:
            if self._reset_if_window_elapsed():
                await self._persist()
            return self.state.calls_made < self.limit

    def time_until_reset(self) -> int:
        """Whole seconds until the current window ends (0 if already over)."""
        elapsed = self._clock() - self.state.last_reset_time
        return max(0, math.ceil(self.window_seconds - elapsed))

    def remaining_calls(self) -> int:
        return max(0, self.limit - self.state.calls_made)

    def api_key(self) -> str:
        """The upgraded key if one is active, else the shared default."""
        return self.state.user_api_key or self.default_api_key

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def record_call(self) -> None:
        """Account for one provider call."""
        async with self._lock:
            self.state.calls_made += 1
            await self._persist()
            calls_made = self.state.calls_made

        await self._report_remaining(calls_made)

    async def try_acquire(self) -> bool:
        """
        Reserve one call in the current window.

        Reset, limit check and increment happen under a single lock hold,
        so concurrent callers can never overshoot the limit. Returns False
        without recording anything when the window is full.
        """
        async with self._lock:
            self._reset_if_window_elapsed()
            if self.state.calls_made >= self.limit:
                return False
            self.state.calls_made += 1
            await self._persist()
            calls_made = self.state.calls_made

        await self._report_remaining(calls_made)
        return True

    async def set_upgraded_key(self, key: str) -> bool:
        """
        Store a user-supplied provider key.

        Only a superficial check is done (non-empty, minimum length). The
        counter restarts either way. Returns whether the key was accepted.
        """
        key = (key or "").strip()
        is_valid = len(key) >= MIN_KEY_LENGTH

        async with self._lock:
            self.state.user_api_key = key if is_valid else None
            self.state.has_custom_key = is_valid
            self.state.calls_made = 0
            await self._persist()

        await self._update_remote_key(
            {
                "providerApiKey": key,
                "keyStatus": KEY_STATUS_VALID if is_valid else KEY_STATUS_INVALID,
                "lastUpdated": datetime.now(UTC).isoformat(),
                "callsRemaining": self.upgraded_limit if is_valid else 0,
            },
            replace=True,
        )

        logger.info(f"Upgraded provider key {'accepted' if is_valid else 'rejected'}")
        return is_valid

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _reset_if_window_elapsed(self) -> bool:
        now = self._clock()
        if now - self.state.last_reset_time >= self.window_seconds:
            self.state.calls_made = 0
            self.state.last_reset_time = now
            return True
        return False

    async def _persist(self) -> None:
        if self.state_file is None:
            return
        try:
            await self.state_file.save(self.state)
        except OSError as e:
            logger.error(f"Error persisting quota state: {e}")

    async def _report_remaining(self, calls_made: int) -> None:
        if self.state.has_custom_key:
            await self._update_remote_key({"callsRemaining": max(0, self.upgraded_limit - calls_made)})

    async def _update_remote_key(self, fields: dict, replace: bool = False) -> None:
        """Best-effort update of the user's key record in the hosted store."""
        user_id = self.identity.current_user() if self.identity else None
        if self.store is None or not user_id:
            return

        try:
            record = {} if replace else (await self.store.get(user_id, API_KEYS) or {})
            record.update(fields)
            await self.store.set(user_id, API_KEYS, record)
        except PersistenceError as e:
            logger.warning(f"Could not update key record for user {user_id}: {e}")
