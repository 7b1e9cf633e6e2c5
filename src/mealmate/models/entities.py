"""
MealMate - Domain Models.

These models map to the per-user documents in the hosted store:
- profiles: UserPreferences
- meal_plans: MealPlan (date -> day record)
- shopping_lists / stocks: ShoppingItem / StockItem lists
- meal_plan_templates: MealPlanTemplate

QuotaState is the exception - it lives in a local record, not the store.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Vocabularies
# =============================================================================


class MealPeriod(str, Enum):
    """A slot within a day's plan."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"

    @property
    def calorie_share(self) -> float:
        return CALORIE_DISTRIBUTION[self]

    def target_calories(self, daily_goal: int) -> int:
        """Calorie budget for this period out of a daily goal."""
        return round(daily_goal * self.calorie_share)


CALORIE_DISTRIBUTION: dict[MealPeriod, float] = {
    MealPeriod.BREAKFAST: 0.30,
    MealPeriod.LUNCH: 0.35,
    MealPeriod.DINNER: 0.35,
}


class _TagEnum(str, Enum):
    """Fixed vocabulary matched case-insensitively."""

    @classmethod
    def parse(cls, tag: str):
        """Return the member matching tag (any case), or None."""
        needle = tag.strip().lower()
        for member in cls:
            if member.value.lower() == needle:
                return member
        return None


class DietaryPreference(_TagEnum):
    BALANCED = "Balanced"
    HIGH_PROTEIN = "High-Protein"
    LOW_CARB = "Low-Carb"
    VEGETARIAN = "Vegetarian"
    VEGAN = "Vegan"


class Allergy(_TagEnum):
    DAIRY = "Dairy"
    EGGS = "Eggs"
    NUTS = "Nuts"
    PEANUTS = "Peanuts"
    SHELLFISH = "Shellfish"
    FISH = "Fish"
    WHEAT = "Wheat"
    GLUTEN = "Gluten"
    SOY = "Soy"
    SESAME = "Sesame"
    PORK = "Pork"


class MealComplexity(str, Enum):
    """How much effort a user wants to spend cooking."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"

    @property
    def max_ready_minutes(self) -> int:
        return {
            MealComplexity.SIMPLE: 30,
            MealComplexity.MODERATE: 60,
            MealComplexity.COMPLEX: 120,
        }[self]


# =============================================================================
# Preferences
# =============================================================================


class UserPreferences(BaseModel):
    """
    Dietary profile read by the meal generator on every call.

    Allergy and preference tags keep whatever the user typed; matching
    against the fixed vocabularies happens where they are translated.
    """

    calorie_goal: int = Field(default=2000, gt=0)
    allergies: list[str] = Field(default_factory=list)
    dietary_preferences: list[str] = Field(default_factory=list)
    cuisine_preferences: list[str] = Field(default_factory=list)
    meal_complexity: MealComplexity | None = None

    @field_validator("allergies", "dietary_preferences", "cuisine_preferences")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        # Set semantics, first spelling wins
        seen: set[str] = set()
        result = []
        for tag in tags:
            key = tag.strip().lower()
            if key and key not in seen:
                seen.add(key)
                result.append(tag.strip())
        return result

    @property
    def max_ready_minutes(self) -> int:
        return (self.meal_complexity or MealComplexity.MODERATE).max_ready_minutes

    def has_preference(self, pref: DietaryPreference) -> bool:
        return any(DietaryPreference.parse(p) is pref for p in self.dietary_preferences)


# =============================================================================
# Meals and plans
# =============================================================================


class PrepStep(BaseModel):
    number: int
    step: str


class Meal(BaseModel):
    """A single recipe attached to a plan slot."""

    id: int | None = None
    name: str = "Untitled Recipe"
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    image: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    url: str = ""
    source: str = ""
    total_time: int = 0
    food_category: str = ""
    instructions: list[PrepStep] = Field(default_factory=list)

    @field_validator("calories", "protein", "carbs", "fat", "total_time", mode="before")
    @classmethod
    def _round_amount(cls, value: Any) -> int:
        if value is None:
            return 0
        return max(0, round(float(value)))


class DayPlan(BaseModel):
    """Up to three meals for one calendar date."""

    breakfast: Meal | None = None
    lunch: Meal | None = None
    dinner: Meal | None = None

    def get(self, period: MealPeriod) -> Meal | None:
        return getattr(self, period.value)

    def set(self, period: MealPeriod, meal: Meal | None) -> None:
        setattr(self, period.value, meal)

    def is_empty(self) -> bool:
        return all(self.get(p) is None for p in MealPeriod)


def format_date(day: date | str) -> str:
    """ISO YYYY-MM-DD key for a plan entry."""
    if isinstance(day, str):
        return date.fromisoformat(day).isoformat()
    return day.isoformat()


class MealPlan(BaseModel):
    """
    Date-keyed meal plan.

    A day with no populated slots is never kept - remove_meal prunes it.
    """

    days: dict[str, DayPlan] = Field(default_factory=dict)

    def get_meal(self, day: date | str, period: MealPeriod) -> Meal | None:
        entry = self.days.get(format_date(day))
        return entry.get(period) if entry else None

    def set_meal(self, day: date | str, period: MealPeriod, meal: Meal) -> None:
        key = format_date(day)
        self.days.setdefault(key, DayPlan()).set(period, meal)

    def remove_meal(self, day: date | str, period: MealPeriod) -> bool:
        """Clear a slot. Returns False if there was nothing to remove."""
        key = format_date(day)
        entry = self.days.get(key)
        if entry is None or entry.get(period) is None:
            return False
        entry.set(period, None)
        if entry.is_empty():
            del self.days[key]
        return True

    def merge(self, other: "MealPlan") -> "MealPlan":
        """Copy of self with every populated slot of other laid on top."""
        merged = self.model_copy(deep=True)
        for day, period, meal in other.meals():
            merged.set_meal(day, period, meal)
        return merged

    def meals(self) -> Iterator[tuple[str, MealPeriod, Meal]]:
        """Populated slots in date-then-period order."""
        for day in sorted(self.days):
            for period in MealPeriod:
                meal = self.days[day].get(period)
                if meal is not None:
                    yield day, period, meal

    def to_document(self) -> dict[str, Any]:
        return {
            day: entry.model_dump(exclude_none=True)
            for day, entry in self.days.items()
            if not entry.is_empty()
        }

    @classmethod
    def from_document(cls, document: dict[str, Any] | None) -> "MealPlan":
        if not document:
            return cls()
        days = {format_date(day): DayPlan.model_validate(entry) for day, entry in document.items()}
        return cls(days={day: entry for day, entry in days.items() if not entry.is_empty()})


class MealPlanTemplate(BaseModel):
    id: str
    name: str
    meals: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class PlanStats(BaseModel):
    total_calories: int = 0
    avg_protein: int = 0
    avg_carbs: int = 0
    avg_fat: int = 0


# =============================================================================
# Shopping
# =============================================================================


class ShoppingItem(BaseModel):
    name: str
    checked: bool = False


class StockItem(BaseModel):
    name: str
    quantity: int = 1


# =============================================================================
# Quota
# =============================================================================


class QuotaState(BaseModel):
    """
    Rolling per-minute call counter.

    last_reset_time is epoch seconds in memory; the persisted record stores
    milliseconds.
    """

    calls_made: int = Field(default=0, ge=0)
    last_reset_time: float = 0.0
    user_api_key: str | None = None
    has_custom_key: bool = False

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "callsMade": self.calls_made,
            "lastResetTime": int(self.last_reset_time * 1000),
            "hasCustomKey": self.has_custom_key,
        }
        if self.user_api_key:
            record["userApiKey"] = self.user_api_key
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "QuotaState":
        return cls(
            calls_made=max(0, int(record.get("callsMade", 0))),
            last_reset_time=float(record.get("lastResetTime", 0)) / 1000,
            user_api_key=record.get("userApiKey") or None,
            has_custom_key=bool(record.get("hasCustomKey", False)),
        )
