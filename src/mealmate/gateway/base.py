"""
Recipe gateway interface.

SearchParams is the internal query vocabulary (our tags, our periods).
Gateways translate it into a provider's query language and hand back
normalized Recipe objects, so nothing downstream sees provider shapes.
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from mealmate.models import MealPeriod, PrepStep


class SearchParams(BaseModel):
    """Internal search request. Every field is optional."""

    meal_type: MealPeriod | None = None
    calories: int | None = None
    diet: str | None = None  # single dietary preference tag
    health: list[str] = Field(default_factory=list)  # extra preference tags (vegetarian/vegan)
    allergies: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)  # ingredient names
    cuisines: list[str] = Field(default_factory=list)
    max_ready_time: int | None = None


class Recipe(BaseModel):
    """Normalized recipe as returned by any gateway."""

    id: int | None = None
    label: str = ""
    image: str | None = None
    source: str = ""
    url: str = ""
    calories: float = 0
    total_time: int = 0
    ingredient_lines: list[str] = Field(default_factory=list)
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    food_category: str = ""


@runtime_checkable
class RecipeGateway(Protocol):
    async def search_recipes(self, query: str, params: SearchParams | None = None) -> list[Recipe]:
        """Search and normalize. An empty list is a valid 'no matches' answer."""
        ...

    async def get_recipe_instructions(self, recipe_id: int) -> list[PrepStep]:
        """Numbered preparation steps; empty when unavailable."""
        ...
