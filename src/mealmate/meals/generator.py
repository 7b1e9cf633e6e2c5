"""
MealMate - Meal Generator.

Produces one Meal for a period by searching with progressively looser
constraints until something comes back:

    1. FULL     - curated term + diet + health + allergies + calories
                  (+ cuisine and ready-time ceiling when set)
    2. RELAXED  - same term, diet and health tags dropped
    3. MINIMAL  - same term, meal period + calorie target only
    4. GENERIC  - the bare period name, no filters at all

Each tier is tried once per call, in order. A uniformly random pick is
made from the first non-empty tier.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum

from mealmate.errors import NoResultsFoundError
from mealmate.gateway import Recipe, RecipeGateway, SearchParams
from mealmate.meals.query_bank import meal_queries
from mealmate.models import DietaryPreference, Meal, MealPeriod, PrepStep, UserPreferences

logger = logging.getLogger(__name__)


class RelaxationTier(str, Enum):
    FULL = "full"
    RELAXED = "relaxed"
    MINIMAL = "minimal"
    GENERIC = "generic"


@dataclass(frozen=True)
class TierQuery:
    tier: RelaxationTier
    query: str
    params: SearchParams


def _diet_and_health(preferences: UserPreferences) -> tuple[str | None, list[str]]:
    """
    Split dietary tags into the single diet slot and the health list.

    Vegetarian/Vegan are health filters; High-Protein beats Low-Carb beats
    Balanced for the diet slot.
    """
    health = [
        pref.value
        for pref in (DietaryPreference.VEGETARIAN, DietaryPreference.VEGAN)
        if preferences.has_preference(pref)
    ]
    diet = None
    for pref in (DietaryPreference.HIGH_PROTEIN, DietaryPreference.LOW_CARB, DietaryPreference.BALANCED):
        if preferences.has_preference(pref):
            diet = pref.value
            break
    return diet, health


def build_tiers(period: MealPeriod, preferences: UserPreferences, query_term: str) -> list[TierQuery]:
    """The four search shapes, loosest last."""
    calories = period.target_calories(preferences.calorie_goal)
    diet, health = _diet_and_health(preferences)

    full = SearchParams(
        meal_type=period,
        calories=calories,
        diet=diet,
        health=health,
        allergies=list(preferences.allergies),
        cuisines=list(preferences.cuisine_preferences),
        max_ready_time=preferences.max_ready_minutes,
    )
    relaxed = full.model_copy(update={"diet": None, "health": []})
    minimal = SearchParams(meal_type=period, calories=calories)

    return [
        TierQuery(RelaxationTier.FULL, query_term, full),
        TierQuery(RelaxationTier.RELAXED, query_term, relaxed),
        TierQuery(RelaxationTier.MINIMAL, query_term, minimal),
        TierQuery(RelaxationTier.GENERIC, period.value, SearchParams()),
    ]


def recipe_to_meal(recipe: Recipe, instructions: list[PrepStep] | None = None) -> Meal:
    return Meal(
        id=recipe.id,
        name=recipe.label or "Untitled Recipe",
        calories=recipe.calories,
        protein=recipe.protein,
        carbs=recipe.carbs,
        fat=recipe.fat,
        image=recipe.image or None,
        ingredients=list(recipe.ingredient_lines),
        url=recipe.url,
        source=recipe.source,
        total_time=recipe.total_time,
        food_category=recipe.food_category,
        instructions=instructions or [],
    )


class MealGenerator:
    """Picks one recipe per call through tiered constraint relaxation."""

    def __init__(self, gateway: RecipeGateway, rng: random.Random | None = None):
        self.gateway = gateway
        self.rng = rng or random.Random()

    async def generate(self, period: MealPeriod, preferences: UserPreferences) -> Meal:
        """
        Find a meal for the period.

        Raises:
            NoResultsFoundError: all four tiers came back empty
            Provider/transport errors propagate unchanged
        """
        query_term = self.rng.choice(meal_queries(preferences.dietary_preferences)[period])

        results: list[Recipe] = []
        for tier_query in build_tiers(period, preferences, query_term):
            results = await self.gateway.search_recipes(tier_query.query, tier_query.params)
            if results:
                logger.debug(f"{period.value}: {len(results)} results at tier {tier_query.tier.value}")
                break
            logger.info(f"No {period.value} results at tier {tier_query.tier.value}, relaxing constraints")

        if not results:
            raise NoResultsFoundError(period.value)

        recipe = self.rng.choice(results)

        instructions: list[PrepStep] = []
        if recipe.id is not None:
            instructions = await self.gateway.get_recipe_instructions(recipe.id)

        return recipe_to_meal(recipe, instructions)
