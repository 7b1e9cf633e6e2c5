"""
Tests for the Spoonacular gateway.

HTTP is served by httpx.MockTransport, so no request leaves the process.
"""

import asyncio

import httpx
import pytest

from mealmate.errors import InvalidResponseError, ProviderError
from mealmate.gateway import SearchParams, SpoonacularGateway, calorie_range
from mealmate.gateway.spoonacular import build_search_query
from mealmate.models import MealPeriod

BASE_URL = "https://api.example.com"


def detail_payload(recipe_id: int, title: str, **overrides) -> dict:
    payload = {
        "id": recipe_id,
        "title": title,
        "image": f"https://img.example.com/{recipe_id}.jpg",
        "readyInMinutes": 25,
        "sourceName": "Example Kitchen",
        "sourceUrl": f"https://example.com/{recipe_id}",
        "nutrition": {
            "nutrients": [
                {"name": "Calories", "amount": 612.6, "unit": "kcal"},
                {"name": "Protein", "amount": 22.4, "unit": "g"},
                {"name": "Carbohydrates", "amount": 80.5, "unit": "g"},
                {"name": "Fat", "amount": 14.49, "unit": "g"},
            ]
        },
        "extendedIngredients": [{"original": "1 cup oats"}, {"original": "2 eggs"}],
        "dishTypes": ["breakfast", "morning meal"],
    }
    payload.update(overrides)
    return payload


class FakeProvider:
    """Routes provider paths to canned JSON and records every request."""

    def __init__(self, search=None, details=None, instructions=None, errors=None, delays=None):
        self.search = search if search is not None else {"results": []}
        self.details = details or {}
        self.instructions = instructions if instructions is not None else []
        self.errors = errors or {}
        self.delays = delays or {}
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.errors:
            status, body = self.errors[path]
            return httpx.Response(status, text=body)

        if path == "/recipes/complexSearch":
            return httpx.Response(200, json=self.search)

        parts = path.strip("/").split("/")
        recipe_id = int(parts[1])
        if parts[2] == "information":
            await asyncio.sleep(self.delays.get(recipe_id, 0))
            return httpx.Response(200, json=self.details[recipe_id])
        return httpx.Response(200, json=self.instructions)

    def search_request(self) -> httpx.Request:
        return next(r for r in self.requests if r.url.path == "/recipes/complexSearch")


@pytest.fixture
def make_gateway(tracker, retry):
    def factory(provider: FakeProvider) -> SpoonacularGateway:
        client = httpx.AsyncClient(transport=httpx.MockTransport(provider), base_url=BASE_URL)
        return SpoonacularGateway(tracker, retry, client=client, number=10)

    return factory


class TestSearchRecipes:
    """search_recipes normalization and failure modes."""

    @pytest.mark.asyncio
    async def test_normalizes_details(self, make_gateway):
        provider = FakeProvider(
            search={"results": [{"id": 11, "title": "Oatmeal", "image": "x.jpg"}]},
            details={11: detail_payload(11, "Oatmeal")},
        )
        gateway = make_gateway(provider)

        recipes = await gateway.search_recipes("oatmeal breakfast", SearchParams(meal_type=MealPeriod.BREAKFAST))

        assert len(recipes) == 1
        recipe = recipes[0]
        assert recipe.id == 11
        assert recipe.label == "Oatmeal"
        assert recipe.source == "Example Kitchen"
        assert recipe.url == "https://example.com/11"
        assert recipe.calories == pytest.approx(612.6)
        assert recipe.carbs == pytest.approx(80.5)
        assert recipe.total_time == 25
        assert recipe.ingredient_lines == ["1 cup oats", "2 eggs"]
        assert recipe.food_category == "breakfast"

    @pytest.mark.asyncio
    async def test_missing_nutrients_default_to_zero(self, make_gateway):
        provider = FakeProvider(
            search={"results": [{"id": 5}]},
            details={5: detail_payload(5, "Plain Toast", nutrition={"nutrients": []}, dishTypes=[])},
        )

        recipes = await make_gateway(provider).search_recipes("toast")

        assert recipes[0].calories == 0
        assert recipes[0].protein == 0
        assert recipes[0].food_category == ""

    @pytest.mark.asyncio
    async def test_preserves_search_order(self, make_gateway):
        # First detail answers last; results still follow search order
        provider = FakeProvider(
            search={"results": [{"id": 1}, {"id": 2}, {"id": 3}]},
            details={i: detail_payload(i, f"Recipe {i}") for i in (1, 2, 3)},
            delays={1: 0.03, 2: 0.01},
        )

        recipes = await make_gateway(provider).search_recipes("dinner")

        assert [r.id for r in recipes] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_search_counts_as_one_call(self, make_gateway, tracker):
        provider = FakeProvider(
            search={"results": [{"id": 1}, {"id": 2}]},
            details={i: detail_payload(i, f"Recipe {i}") for i in (1, 2)},
        )

        await make_gateway(provider).search_recipes("lunch")

        assert tracker.state.calls_made == 1

    @pytest.mark.asyncio
    async def test_empty_results_is_valid(self, make_gateway):
        gateway = make_gateway(FakeProvider(search={"results": []}))

        assert await gateway.search_recipes("nothing") == []

    @pytest.mark.asyncio
    async def test_missing_results_list_is_invalid(self, make_gateway):
        gateway = make_gateway(FakeProvider(search={"totalResults": 0}))

        with pytest.raises(InvalidResponseError):
            await gateway.search_recipes("anything")

    @pytest.mark.asyncio
    async def test_not_found_fails_without_retry(self, make_gateway, sleep):
        provider = FakeProvider(errors={"/recipes/complexSearch": (404, "not found")})

        with pytest.raises(ProviderError) as exc_info:
            await make_gateway(provider).search_recipes("anything")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == "not found"
        assert "could not be found" in exc_info.value.user_message
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_rate_limit_retried_then_raised(self, make_gateway, sleep):
        provider = FakeProvider(errors={"/recipes/complexSearch": (429, "slow down")})

        with pytest.raises(ProviderError) as exc_info:
            await make_gateway(provider).search_recipes("anything")

        assert exc_info.value.status_code == 429
        assert len(provider.requests) == 3
        assert sleep.calls == [2, 4]

    @pytest.mark.asyncio
    async def test_sends_api_key(self, make_gateway):
        provider = FakeProvider()

        await make_gateway(provider).search_recipes("soup")

        params = provider.search_request().url.params
        assert params["apiKey"] == "shared-test-key"
        assert params["query"] == "soup"
        assert params["number"] == "10"

    @pytest.mark.asyncio
    async def test_sends_upgraded_key(self, make_gateway, tracker):
        await tracker.set_upgraded_key("my-own-provider-key")
        provider = FakeProvider()

        await make_gateway(provider).search_recipes("soup")

        assert provider.search_request().url.params["apiKey"] == "my-own-provider-key"

    @pytest.mark.asyncio
    async def test_detail_requests_nutrition(self, make_gateway):
        provider = FakeProvider(search={"results": [{"id": 9}]}, details={9: detail_payload(9, "Stew")})

        await make_gateway(provider).search_recipes("stew")

        detail = next(r for r in provider.requests if r.url.path == "/recipes/9/information")
        assert detail.url.params["includeNutrition"] == "true"


class TestInstructions:
    """get_recipe_instructions degrades instead of failing."""

    @pytest.mark.asyncio
    async def test_first_block_steps(self, make_gateway):
        provider = FakeProvider(
            instructions=[
                {"name": "", "steps": [{"number": 1, "step": "Boil water"}, {"number": 2, "step": "Add oats"}]},
                {"name": "Topping", "steps": [{"number": 1, "step": "Slice banana"}]},
            ]
        )

        steps = await make_gateway(provider).get_recipe_instructions(42)

        assert [s.step for s in steps] == ["Boil water", "Add oats"]

    @pytest.mark.asyncio
    async def test_no_blocks_means_no_steps(self, make_gateway):
        assert await make_gateway(FakeProvider(instructions=[])).get_recipe_instructions(42) == []

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, make_gateway):
        provider = FakeProvider(errors={"/recipes/42/analyzedInstructions": (500, "boom")})

        assert await make_gateway(provider).get_recipe_instructions(42) == []

    @pytest.mark.asyncio
    async def test_malformed_returns_empty(self, make_gateway):
        provider = FakeProvider(instructions=[{"steps": [{"number": "one"}]}])

        assert await make_gateway(provider).get_recipe_instructions(42) == []


class TestBuildSearchQuery:
    """Internal SearchParams -> provider query parameters."""

    def test_calorie_range(self):
        query = build_search_query("lunch", SearchParams(calories=600), 10)

        assert query["minCalories"] == "450"
        assert query["maxCalories"] == "750"

    def test_calorie_floor_clamped(self):
        assert calorie_range(100) == (0, 250)

    def test_meal_type(self):
        query = build_search_query("x", SearchParams(meal_type=MealPeriod.DINNER), 10)
        assert query["type"] == "dinner"

    def test_diet_and_health_combined(self):
        params = SearchParams(diet="High-Protein", health=["Vegetarian"])

        query = build_search_query("x", params, 10)

        assert query["diet"] == "high-protein,vegetarian"

    def test_unknown_diet_dropped(self):
        query = build_search_query("x", SearchParams(diet="Paleo"), 10)
        assert "diet" not in query

    def test_allergies_become_intolerances(self):
        params = SearchParams(allergies=["Dairy", "nuts", "Fish"])

        query = build_search_query("x", params, 10)

        assert query["intolerances"] == "dairy,tree nut,seafood"
        assert "excludeIngredients" not in query

    def test_unmapped_allergy_also_excluded(self):
        params = SearchParams(allergies=["Pork"], excluded=["Cilantro"])

        query = build_search_query("x", params, 10)

        assert query["intolerances"] == "pork"
        assert query["excludeIngredients"] == "pork,cilantro"

    def test_cuisine_and_ready_time(self):
        params = SearchParams(cuisines=["italian", "thai"], max_ready_time=30)

        query = build_search_query("x", params, 10)

        assert query["cuisine"] == "italian,thai"
        assert query["maxReadyTime"] == "30"

    def test_bare_query(self):
        assert build_search_query("breakfast", SearchParams(), 5) == {"query": "breakfast", "number": "5"}
