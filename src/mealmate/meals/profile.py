"""User preference profile stored in the profiles collection."""

from mealmate.auth import IdentityProvider, require_user
from mealmate.db import PROFILES, DocumentStore
from mealmate.models import UserPreferences


class ProfileService:
    def __init__(self, store: DocumentStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    async def load_preferences(self) -> UserPreferences:
        """Stored preferences, or defaults (2000 kcal, no tags) for a new profile."""
        user_id = require_user(self.identity)
        document = await self.store.get(user_id, PROFILES) or {}
        return UserPreferences.model_validate(document.get("preferences", {}))

    async def update_preferences(self, preferences: UserPreferences) -> UserPreferences:
        user_id = require_user(self.identity)
        document = await self.store.get(user_id, PROFILES) or {}
        document["preferences"] = preferences.model_dump(mode="json")
        await self.store.set(user_id, PROFILES, document)
        return preferences
