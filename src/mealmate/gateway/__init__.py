"""
MealMate - Recipe gateways.

Translate internal search requests into a provider's query language,
run them through the retry policy, and normalize what comes back.
"""

from mealmate.gateway.base import Recipe, RecipeGateway, SearchParams
from mealmate.gateway.spoonacular import SpoonacularGateway, calorie_range

__all__ = ["Recipe", "RecipeGateway", "SearchParams", "SpoonacularGateway", "calorie_range"]
