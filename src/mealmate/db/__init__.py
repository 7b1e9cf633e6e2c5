"""
MealMate - Persistence.

Per-user documents live in a DocumentStore (Supabase in production,
in-memory in tests). The quota counter is the only locally persisted state.
"""

from mealmate.db.adapter import (
    API_KEYS,
    MEAL_PLAN_TEMPLATES,
    MEAL_PLANS,
    PROFILES,
    SHOPPING_LISTS,
    STOCKS,
    DocumentStore,
    InMemoryDocumentStore,
)
from mealmate.db.local import QuotaStateFile

__all__ = [
    "API_KEYS",
    "MEAL_PLAN_TEMPLATES",
    "MEAL_PLANS",
    "PROFILES",
    "SHOPPING_LISTS",
    "STOCKS",
    "DocumentStore",
    "InMemoryDocumentStore",
    "QuotaStateFile",
]
