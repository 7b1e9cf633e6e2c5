"""MealMate domain models."""

from mealmate.models.entities import (
    CALORIE_DISTRIBUTION,
    Allergy,
    DayPlan,
    DietaryPreference,
    Meal,
    MealComplexity,
    MealPeriod,
    MealPlan,
    MealPlanTemplate,
    PlanStats,
    PrepStep,
    QuotaState,
    ShoppingItem,
    StockItem,
    UserPreferences,
    format_date,
)

__all__ = [
    "CALORIE_DISTRIBUTION",
    "Allergy",
    "DayPlan",
    "DietaryPreference",
    "Meal",
    "MealComplexity",
    "MealPeriod",
    "MealPlan",
    "MealPlanTemplate",
    "PlanStats",
    "PrepStep",
    "QuotaState",
    "ShoppingItem",
    "StockItem",
    "UserPreferences",
    "format_date",
]
