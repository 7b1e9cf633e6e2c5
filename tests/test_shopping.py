"""Tests for shopping list derivation and the shopping/stock service."""

import pytest

from conftest import make_meal
from mealmate.auth import SessionIdentity
from mealmate.db import SHOPPING_LISTS, STOCKS
from mealmate.errors import AuthenticationRequiredError, InvalidRequestError
from mealmate.meals import ShoppingListService, derive_shopping_list
from mealmate.models import MealPeriod, MealPlan, ShoppingItem


@pytest.fixture
def shopping(store, identity):
    return ShoppingListService(store, identity)


def plan_with(*meals_by_slot) -> MealPlan:
    plan = MealPlan()
    for day, period, meal in meals_by_slot:
        plan.set_meal(day, period, meal)
    return plan


class TestDeriveShoppingList:
    def test_identical_lines_merged(self):
        plan = plan_with(
            ("2024-05-01", MealPeriod.BREAKFAST, make_meal(ingredients=["2 eggs", "1 cup oats"])),
            ("2024-05-02", MealPeriod.BREAKFAST, make_meal(ingredients=["2 eggs", "1 banana"])),
        )

        items = derive_shopping_list(plan)

        assert [i.name for i in items] == ["2 eggs", "1 cup oats", "1 banana"]
        assert all(not i.checked for i in items)

    def test_different_phrasings_kept(self):
        plan = plan_with(
            ("2024-05-01", MealPeriod.LUNCH, make_meal(ingredients=["2 cups flour"])),
            ("2024-05-01", MealPeriod.DINNER, make_meal(ingredients=["flour"])),
        )

        assert [i.name for i in derive_shopping_list(plan)] == ["2 cups flour", "flour"]

    def test_follows_plan_order(self):
        plan = plan_with(
            ("2024-05-02", MealPeriod.BREAKFAST, make_meal(ingredients=["milk"])),
            ("2024-05-01", MealPeriod.DINNER, make_meal(ingredients=["rice"])),
            ("2024-05-01", MealPeriod.BREAKFAST, make_meal(ingredients=["bread"])),
        )

        assert [i.name for i in derive_shopping_list(plan)] == ["bread", "rice", "milk"]

    def test_empty_plan(self):
        assert derive_shopping_list(MealPlan()) == []


class TestShoppingList:
    @pytest.mark.asyncio
    async def test_add_item(self, shopping, store):
        items = await shopping.add_item("  olive oil ")

        assert items == [ShoppingItem(name="olive oil")]
        assert await store.get("user-1", SHOPPING_LISTS) == {"items": [{"name": "olive oil", "checked": False}]}

    @pytest.mark.asyncio
    async def test_add_existing_item_ignored(self, shopping):
        await shopping.add_item("salt")
        items = await shopping.add_item("salt")

        assert len(items) == 1

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, shopping):
        with pytest.raises(InvalidRequestError) as exc_info:
            await shopping.add_item("   ")
        assert exc_info.value.user_message == "Item name cannot be empty"

    @pytest.mark.asyncio
    async def test_add_from_plan_skips_listed(self, shopping):
        await shopping.add_item("2 eggs")
        plan = plan_with(("2024-05-01", MealPeriod.BREAKFAST, make_meal(ingredients=["2 eggs", "1 cup oats"])))

        added = await shopping.add_from_plan(plan)

        assert [i.name for i in added] == ["1 cup oats"]
        assert [i.name for i in await shopping.load()] == ["2 eggs", "1 cup oats"]

    @pytest.mark.asyncio
    async def test_toggle_item(self, shopping):
        await shopping.add_item("bread")

        items = await shopping.toggle_item(0)
        assert items[0].checked is True

        items = await shopping.toggle_item(0)
        assert items[0].checked is False

    @pytest.mark.asyncio
    async def test_toggle_bad_index(self, shopping):
        with pytest.raises(InvalidRequestError):
            await shopping.toggle_item(3)

    @pytest.mark.asyncio
    async def test_remove_item(self, shopping):
        await shopping.add_item("bread")
        await shopping.add_item("jam")

        items = await shopping.remove_item(0)

        assert [i.name for i in items] == ["jam"]

    @pytest.mark.asyncio
    async def test_clear(self, shopping):
        await shopping.add_item("bread")
        await shopping.clear()

        assert await shopping.load() == []

    @pytest.mark.asyncio
    async def test_requires_signed_in_user(self, store):
        with pytest.raises(AuthenticationRequiredError):
            await ShoppingListService(store, SessionIdentity()).load()

    @pytest.mark.asyncio
    async def test_subscription_receives_items(self, shopping):
        updates = []
        await shopping.subscribe_shopping_list(updates.append, pytest.fail)

        await shopping.add_item("apples")

        assert updates == [[], [ShoppingItem(name="apples")]]


class TestStock:
    @pytest.mark.asyncio
    async def test_move_to_stock(self, shopping, store):
        await shopping.add_item("rice")
        await shopping.add_item("beans")

        remaining, stock = await shopping.move_to_stock("rice")

        assert [i.name for i in remaining] == ["beans"]
        assert [(s.name, s.quantity) for s in stock] == [("rice", 1)]
        assert await store.get("user-1", STOCKS) == {"items": [{"name": "rice", "quantity": 1}]}

    @pytest.mark.asyncio
    async def test_update_quantity(self, shopping):
        await shopping.add_item("rice")
        await shopping.move_to_stock("rice")

        stock = await shopping.update_stock_quantity("rice", 4)

        assert stock[0].quantity == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -2])
    async def test_quantity_must_be_positive(self, shopping, quantity):
        with pytest.raises(InvalidRequestError) as exc_info:
            await shopping.update_stock_quantity("rice", quantity)
        assert exc_info.value.user_message == "Quantity must be a positive number"

    @pytest.mark.asyncio
    async def test_remove_stock_item(self, shopping):
        await shopping.add_item("rice")
        await shopping.move_to_stock("rice")

        assert await shopping.remove_stock_item("rice") == []

    @pytest.mark.asyncio
    async def test_stock_subscription(self, shopping):
        updates = []
        await shopping.subscribe_stock(updates.append, pytest.fail)

        await shopping.add_item("flour")
        await shopping.move_to_stock("flour")

        assert [[s.name for s in update] for update in updates] == [[], ["flour"]]
