from mealmate.auth.identity import (
    IdentityProvider,
    SessionIdentity,
    SupabaseIdentity,
    require_user,
)

__all__ = ["IdentityProvider", "SessionIdentity", "SupabaseIdentity", "require_user"]
