"""
MealMate - Shopping list and stock.

derive_shopping_list flattens a plan into unique ingredient lines. Lines
are compared as exact strings, so "2 cups flour" and "flour" stay separate
entries.

ShoppingListService edits the user's shopping_lists and stocks documents.
Both are stored as {"items": [...]} and fully rewritten on every change.
"""

import asyncio
import logging
from typing import Callable

from mealmate.auth import IdentityProvider, require_user
from mealmate.db import SHOPPING_LISTS, STOCKS, DocumentStore
from mealmate.db.adapter import OnError, Unsubscribe
from mealmate.errors import InvalidRequestError
from mealmate.models import MealPlan, ShoppingItem, StockItem

logger = logging.getLogger(__name__)


def derive_shopping_list(plan: MealPlan) -> list[ShoppingItem]:
    """Unchecked items for every distinct ingredient line, first-seen order."""
    seen: dict[str, None] = {}
    for _, _, meal in plan.meals():
        for line in meal.ingredients:
            seen.setdefault(line, None)
    return [ShoppingItem(name=line) for line in seen]


class ShoppingListService:
    """Shopping list and stock edits for the signed-in user."""

    def __init__(self, store: DocumentStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def load(self) -> list[ShoppingItem]:
        user_id = require_user(self.identity)
        document = await self.store.get(user_id, SHOPPING_LISTS) or {}
        return [ShoppingItem.model_validate(i) for i in document.get("items", [])]

    async def load_stock(self) -> list[StockItem]:
        user_id = require_user(self.identity)
        document = await self.store.get(user_id, STOCKS) or {}
        return [StockItem.model_validate(i) for i in document.get("items", [])]

    async def _save(self, items: list[ShoppingItem]) -> None:
        user_id = require_user(self.identity)
        await self.store.set(user_id, SHOPPING_LISTS, {"items": [i.model_dump() for i in items]})

    async def _save_stock(self, items: list[StockItem]) -> None:
        user_id = require_user(self.identity)
        await self.store.set(user_id, STOCKS, {"items": [i.model_dump() for i in items]})

    async def subscribe_shopping_list(
        self, on_update: Callable[[list[ShoppingItem]], None], on_error: OnError
    ) -> Unsubscribe:
        user_id = require_user(self.identity)
        return await self.store.subscribe(
            user_id,
            SHOPPING_LISTS,
            lambda doc: on_update([ShoppingItem.model_validate(i) for i in (doc or {}).get("items", [])]),
            on_error,
        )

    async def subscribe_stock(self, on_update: Callable[[list[StockItem]], None], on_error: OnError) -> Unsubscribe:
        user_id = require_user(self.identity)
        return await self.store.subscribe(
            user_id,
            STOCKS,
            lambda doc: on_update([StockItem.model_validate(i) for i in (doc or {}).get("items", [])]),
            on_error,
        )

    # -------------------------------------------------------------------------
    # Shopping list
    # -------------------------------------------------------------------------

    async def add_item(self, name: str) -> list[ShoppingItem]:
        """Append one item. Already-listed names are left alone."""
        name = (name or "").strip()
        if not name:
            raise InvalidRequestError("Empty item name", user_message="Item name cannot be empty")

        items = await self.load()
        if any(item.name == name for item in items):
            logger.debug(f"'{name}' already on shopping list")
            return items

        items.append(ShoppingItem(name=name))
        await self._save(items)
        return items

    async def add_items(self, new_items: list[ShoppingItem]) -> list[ShoppingItem]:
        """Append items whose names aren't listed yet. Returns the ones added."""
        items = await self.load()
        present = {item.name for item in items}

        added = []
        for item in new_items:
            if item.name not in present:
                present.add(item.name)
                added.append(ShoppingItem(name=item.name, checked=item.checked))

        if added:
            await self._save(items + added)
        return added

    async def add_from_plan(self, plan: MealPlan) -> list[ShoppingItem]:
        return await self.add_items(derive_shopping_list(plan))

    async def toggle_item(self, index: int) -> list[ShoppingItem]:
        items = await self.load()
        _check_index(index, items)
        items[index].checked = not items[index].checked
        await self._save(items)
        return items

    async def remove_item(self, index: int) -> list[ShoppingItem]:
        items = await self.load()
        _check_index(index, items)
        del items[index]
        await self._save(items)
        return items

    async def clear(self) -> None:
        await self._save([])

    # -------------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------------

    async def move_to_stock(self, name: str) -> tuple[list[ShoppingItem], list[StockItem]]:
        """Take an item off the shopping list and add one of it to stock."""
        items, stock = await asyncio.gather(self.load(), self.load_stock())

        remaining = [item for item in items if item.name != name]
        stock.append(StockItem(name=name, quantity=1))

        await asyncio.gather(self._save(remaining), self._save_stock(stock))
        return remaining, stock

    async def update_stock_quantity(self, name: str, quantity: int) -> list[StockItem]:
        if not quantity or quantity < 1:
            raise InvalidRequestError(
                f"Invalid quantity {quantity}", user_message="Quantity must be a positive number"
            )
        stock = await self.load_stock()
        for item in stock:
            if item.name == name:
                item.quantity = quantity
        await self._save_stock(stock)
        return stock

    async def remove_stock_item(self, name: str) -> list[StockItem]:
        stock = [item for item in await self.load_stock() if item.name != name]
        await self._save_stock(stock)
        return stock


def _check_index(index: int, items: list) -> None:
    if not 0 <= index < len(items):
        raise InvalidRequestError(f"No shopping item at index {index}", user_message="That item no longer exists.")
