"""
MealMate - Spoonacular Gateway.

Three provider endpoints are used:
- /recipes/complexSearch          search summaries (id, title, image)
- /recipes/{id}/information       full detail incl. nutrition
- /recipes/{id}/analyzedInstructions  numbered steps

A search is one quota-accounted call: the search request plus one detail
fetch per result, issued concurrently and joined back in search order.
Authentication is the apiKey query parameter.
"""

import asyncio
import logging
from typing import Any

import httpx

from mealmate.config import settings
from mealmate.errors import InvalidResponseError, provider_error
from mealmate.gateway.base import Recipe, SearchParams
from mealmate.gateway.mappings import allergy_to_intolerance, diet_tag_to_provider
from mealmate.gateway.responses import (
    Malformed,
    Parsed,
    RecipeDetail,
    detail_to_recipe,
    parse_detail,
    parse_instructions,
    parse_search,
)
from mealmate.models import PrepStep
from mealmate.quota import QuotaTracker, RetryPolicy

logger = logging.getLogger(__name__)

# Calorie targets are widened to +/- this many kcal
CALORIE_TOLERANCE = 150

# Max chars of a provider error body written to the log
MAX_LOGGED_BODY = 500


def calorie_range(target: int) -> tuple[int, int]:
    """[target - 150, target + 150], floor clamped at 0."""
    return max(0, target - CALORIE_TOLERANCE), target + CALORIE_TOLERANCE


def build_search_query(query: str, params: SearchParams, number: int) -> dict[str, str]:
    """
    Translate an internal search into complexSearch query parameters.

    The api key is added at request time, not here.
    """
    query_params: dict[str, str] = {
        "query": query,
        "number": str(number),
    }

    # Spoonacular ANDs comma-separated diets, so health tags narrow the diet filter
    diets: list[str] = []
    for tag in [params.diet, *params.health]:
        mapped = diet_tag_to_provider(tag)
        if mapped and mapped not in diets:
            diets.append(mapped)
    if diets:
        query_params["diet"] = ",".join(diets)

    if params.meal_type:
        query_params["type"] = params.meal_type.value

    if params.calories:
        min_cal, max_cal = calorie_range(params.calories)
        query_params["minCalories"] = str(min_cal)
        query_params["maxCalories"] = str(max_cal)

    intolerances: list[str] = []
    excluded: list[str] = []
    for allergy in params.allergies:
        mapping = allergy_to_intolerance(allergy)
        if mapping.intolerance and mapping.intolerance not in intolerances:
            intolerances.append(mapping.intolerance)
        if mapping.exclude_ingredient and mapping.exclude_ingredient not in excluded:
            excluded.append(mapping.exclude_ingredient)
    for ingredient in params.excluded:
        term = ingredient.strip().lower()
        if term and term not in excluded:
            excluded.append(term)

    if intolerances:
        query_params["intolerances"] = ",".join(intolerances)
    if excluded:
        query_params["excludeIngredients"] = ",".join(excluded)

    if params.cuisines:
        query_params["cuisine"] = ",".join(params.cuisines)
    if params.max_ready_time:
        query_params["maxReadyTime"] = str(params.max_ready_time)

    return query_params


class SpoonacularGateway:
    """RecipeGateway over the Spoonacular HTTP API."""

    def __init__(
        self,
        tracker: QuotaTracker,
        retry: RetryPolicy | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        number: int | None = None,
    ):
        self.tracker = tracker
        self.retry = retry or RetryPolicy(tracker)
        self.number = number if number is not None else settings.recipe_search_limit
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.recipe_api_base_url,
            timeout=settings.recipe_http_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SpoonacularGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # RecipeGateway
    # -------------------------------------------------------------------------

    async def search_recipes(self, query: str, params: SearchParams | None = None) -> list[Recipe]:
        query_params = build_search_query(query, params or SearchParams(), self.number)

        async def operation() -> list[Recipe]:
            payload = await self._get("/recipes/complexSearch", query_params)

            match parse_search(payload):
                case Malformed(reason=reason):
                    logger.warning(f"Malformed search response for '{query}': {reason}")
                    raise InvalidResponseError(f"Invalid response format from recipe provider: {reason}")
                case Parsed(data=search):
                    summaries = search.results

            # gather keeps result order aligned with the search order
            details = await asyncio.gather(*(self._get_detail(s.id) for s in summaries))
            return [detail_to_recipe(d) for d in details]

        return await self.retry.run(operation)

    async def get_recipe_instructions(self, recipe_id: int) -> list[PrepStep]:
        """Steps for a recipe. Any failure degrades to an empty list."""

        async def operation() -> list[PrepStep]:
            payload = await self._get(f"/recipes/{recipe_id}/analyzedInstructions", {})
            match parse_instructions(payload):
                case Malformed(reason=reason):
                    raise InvalidResponseError(reason)
                case Parsed(data=steps):
                    return steps

        try:
            return await self.retry.run(operation)
        except Exception as e:
            logger.error(f"Error fetching instructions for recipe {recipe_id}: {e}")
            return []

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def _get_detail(self, recipe_id: int) -> RecipeDetail:
        payload = await self._get(f"/recipes/{recipe_id}/information", {"includeNutrition": "true"})
        match parse_detail(payload):
            case Malformed(reason=reason):
                raise InvalidResponseError(f"Recipe {recipe_id}: {reason}")
            case Parsed(data=detail):
                return detail

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        response = await self._client.get(path, params={**params, "apiKey": self.tracker.api_key()})

        if response.is_error:
            body = response.text[:MAX_LOGGED_BODY]
            logger.warning(f"Recipe provider error {response.status_code} on {path}: {body}")
            raise provider_error(response.status_code, body, path)

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"Non-JSON response from {path}") from e
