"""
Pytest configuration and fixtures for MealMate tests.

Time is faked everywhere: FakeClock drives the quota window and
RecordingSleep records backoff waits (advancing the clock) instead of
sleeping.
"""

import os

import pytest

# Keep a developer's .env out of the test run
os.environ.setdefault("MEALMATE_ENV", "development")
os.environ.setdefault("RECIPE_API_KEY", "shared-test-key")

from mealmate.auth import SessionIdentity
from mealmate.db import InMemoryDocumentStore
from mealmate.gateway import Recipe, SearchParams
from mealmate.models import Meal, PrepStep, UserPreferences
from mealmate.quota import QuotaTracker, RetryPolicy


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records waits and advances the clock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


class FakeGateway:
    """
    RecipeGateway double.

    Each search pops the next queued response (a list of recipes or an
    exception to raise). An empty queue answers with no results.
    """

    def __init__(self, responses=None, instructions=None):
        self.responses = list(responses or [])
        self.instructions = list(instructions or [])
        self.search_calls: list[tuple[str, SearchParams]] = []
        self.instruction_calls: list[int] = []

    async def search_recipes(self, query, params=None):
        self.search_calls.append((query, params or SearchParams()))
        if not self.responses:
            return []
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def get_recipe_instructions(self, recipe_id):
        self.instruction_calls.append(recipe_id)
        return list(self.instructions)


def make_recipe(recipe_id: int = 1, label: str = "Oatmeal Bowl", **overrides) -> Recipe:
    data = {
        "id": recipe_id,
        "label": label,
        "image": f"https://img.example.com/{recipe_id}.jpg",
        "source": "Example Kitchen",
        "url": f"https://example.com/recipes/{recipe_id}",
        "calories": 612.6,
        "total_time": 25,
        "ingredient_lines": ["1 cup oats", "2 eggs"],
        "protein": 22.4,
        "carbs": 80.5,
        "fat": 14.49,
        "food_category": "breakfast",
    }
    data.update(overrides)
    return Recipe(**data)


def make_meal(name: str = "Oatmeal Bowl", ingredients: list[str] | None = None, **overrides) -> Meal:
    data = {
        "id": 1,
        "name": name,
        "calories": 600,
        "protein": 20,
        "carbs": 80,
        "fat": 15,
        "ingredients": ingredients if ingredients is not None else ["1 cup oats", "2 eggs"],
        "url": "https://example.com/recipes/1",
        "source": "Example Kitchen",
        "total_time": 20,
        "food_category": "breakfast",
    }
    data.update(overrides)
    return Meal(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep(clock):
    return RecordingSleep(clock)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def identity():
    return SessionIdentity("user-1")


@pytest.fixture
def tracker(clock):
    """Base-tier tracker with no local file or remote store."""
    return QuotaTracker(
        None,
        base_limit=5,
        upgraded_limit=150,
        window_seconds=60,
        default_api_key="shared-test-key",
        clock=clock,
    )


@pytest.fixture
def retry(tracker, sleep):
    return RetryPolicy(tracker, max_attempts=3, sleep=sleep)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def preferences():
    return UserPreferences(
        calorie_goal=2000,
        allergies=["Dairy", "Pork"],
        dietary_preferences=["Vegetarian", "High-Protein"],
        cuisine_preferences=["italian"],
    )


@pytest.fixture
def sample_steps():
    return [PrepStep(number=1, step="Boil water"), PrepStep(number=2, step="Add oats")]
