"""Tests for the profile service and identity helpers."""

import pytest

from mealmate.auth import SessionIdentity, require_user
from mealmate.db import PROFILES
from mealmate.errors import AuthenticationRequiredError
from mealmate.meals import ProfileService
from mealmate.models import UserPreferences


class TestProfileService:
    @pytest.mark.asyncio
    async def test_new_profile_gets_defaults(self, store, identity):
        prefs = await ProfileService(store, identity).load_preferences()

        assert prefs == UserPreferences()

    @pytest.mark.asyncio
    async def test_update_keeps_other_fields(self, store, identity):
        await store.set("user-1", PROFILES, {"displayName": "Sam"})
        service = ProfileService(store, identity)

        await service.update_preferences(UserPreferences(calorie_goal=1600, allergies=["Soy"]))

        document = await store.get("user-1", PROFILES)
        assert document["displayName"] == "Sam"
        assert (await service.load_preferences()).allergies == ["Soy"]
        assert (await service.load_preferences()).calorie_goal == 1600


class TestSessionIdentity:
    def test_callbacks_fire_on_change(self):
        identity = SessionIdentity()
        seen = []
        unsubscribe = identity.on_auth_change(seen.append)

        identity.sign_in("user-9")
        identity.sign_in("user-9")
        identity.sign_out()
        unsubscribe()
        identity.sign_in("user-10")

        assert seen == ["user-9", None]

    def test_require_user(self):
        assert require_user(SessionIdentity("user-1")) == "user-1"
        with pytest.raises(AuthenticationRequiredError):
            require_user(SessionIdentity())
