"""
MealMate - Identity.

The core only asks two questions of the identity provider: who is signed
in, and tell me when that changes. Absence of a user means the operation
is unavailable and surfaces as AuthenticationRequiredError.
"""

import logging
from typing import Callable, Protocol, runtime_checkable

from supabase import Client

from mealmate.errors import AuthenticationRequiredError

logger = logging.getLogger(__name__)

AuthCallback = Callable[[str | None], None]


@runtime_checkable
class IdentityProvider(Protocol):
    def current_user(self) -> str | None:
        """Id of the signed-in user, or None."""
        ...

    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Register callback(user_id | None); returns an unsubscribe callable."""
        ...


class SessionIdentity:
    """In-process identity holder. Used directly in tests and local runs."""

    def __init__(self, user_id: str | None = None):
        self._user_id = user_id
        self._callbacks: list[AuthCallback] = []

    def current_user(self) -> str | None:
        return self._user_id

    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def sign_in(self, user_id: str) -> None:
        self._set_user(user_id)

    def sign_out(self) -> None:
        self._set_user(None)

    def _set_user(self, user_id: str | None) -> None:
        if user_id == self._user_id:
            return
        self._user_id = user_id
        for callback in list(self._callbacks):
            callback(user_id)


class SupabaseIdentity(SessionIdentity):
    """Email/password identity backed by Supabase auth."""

    def __init__(self, client: Client):
        super().__init__()
        self._client = client

    def sign_in_with_password(self, email: str, password: str) -> str:
        if not email or not password:
            raise AuthenticationRequiredError("Missing credentials", user_message="Please fill in all fields")

        try:
            response = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"Sign-in failed for {email}: {e}")
            raise AuthenticationRequiredError(
                str(e), user_message="Invalid email or password."
            ) from e

        if not response or not response.user:
            raise AuthenticationRequiredError("Sign-in returned no user")

        self.sign_in(response.user.id)
        return response.user.id

    def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        finally:
            super().sign_out()


def require_user(identity: IdentityProvider) -> str:
    """Return the signed-in user's id or raise AuthenticationRequiredError."""
    user_id = identity.current_user()
    if not user_id:
        raise AuthenticationRequiredError("No signed-in user")
    return user_id
