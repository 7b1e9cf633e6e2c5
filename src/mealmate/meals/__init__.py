"""
MealMate - Meal planning services.

- generator: one meal per period via tiered constraint relaxation
- planner: date x period grid generation and plan edits
- shopping: shopping list derivation and stock
- profile: user preferences
- sharing: one day of a plan as shareable text
"""

from mealmate.meals.generator import MealGenerator, RelaxationTier, build_tiers
from mealmate.meals.planner import (
    MealPlanService,
    PlanGenerationJob,
    PlanGenerationResult,
    SlotFailure,
    date_range,
    plan_stats,
)
from mealmate.meals.profile import ProfileService
from mealmate.meals.sharing import format_day_for_sharing
from mealmate.meals.shopping import ShoppingListService, derive_shopping_list

__all__ = [
    "MealGenerator",
    "MealPlanService",
    "PlanGenerationJob",
    "PlanGenerationResult",
    "ProfileService",
    "RelaxationTier",
    "ShoppingListService",
    "SlotFailure",
    "build_tiers",
    "date_range",
    "derive_shopping_list",
    "format_day_for_sharing",
    "plan_stats",
]
