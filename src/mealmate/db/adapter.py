"""
Document Store Protocol.

The core only needs three things from the hosted database: read a
per-user document, replace it, and watch it for changes. Backends
implement _read/_write; listener bookkeeping lives here so every backend
notifies subscribers the same way.

Writes are full replaces (last writer wins). There are no transactions
and no field-level merges.
"""

import copy
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable

from mealmate.errors import PersistenceError

logger = logging.getLogger(__name__)

Document = dict[str, Any]
OnUpdate = Callable[[Document | None], None]
OnError = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

# Collection names
PROFILES = "profiles"
MEAL_PLANS = "meal_plans"
SHOPPING_LISTS = "shopping_lists"
STOCKS = "stocks"
MEAL_PLAN_TEMPLATES = "meal_plan_templates"
API_KEYS = "api_keys"


class DocumentStore(ABC):
    """Per-user document access with change subscriptions."""

    def __init__(self) -> None:
        self._listeners: dict[tuple[str, str], list[tuple[OnUpdate, OnError]]] = defaultdict(list)

    @abstractmethod
    async def _read(self, user_id: str, collection: str) -> Document | None:
        ...

    @abstractmethod
    async def _write(self, user_id: str, collection: str, document: Document) -> None:
        ...

    async def get(self, user_id: str, collection: str) -> Document | None:
        """Fetch a document, or None if it doesn't exist."""
        try:
            return await self._read(user_id, collection)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to read {collection} for user {user_id}: {e}")
            raise PersistenceError(f"Error reading {collection}: {e}") from e

    async def set(self, user_id: str, collection: str, document: Document) -> None:
        """Replace a document and notify subscribers."""
        try:
            await self._write(user_id, collection, document)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"Failed to write {collection} for user {user_id}: {e}")
            raise PersistenceError(f"Error saving to {collection}: {e}") from e
        self._notify(user_id, collection, document)

    async def subscribe(
        self,
        user_id: str,
        collection: str,
        on_update: OnUpdate,
        on_error: OnError,
    ) -> Unsubscribe:
        """
        Watch a document.

        on_update fires once with the current snapshot, then after every
        write. Returns a callable that stops the subscription.
        """
        key = (user_id, collection)
        entry = (on_update, on_error)
        self._listeners[key].append(entry)

        try:
            snapshot = await self.get(user_id, collection)
        except PersistenceError as e:
            on_error(e)
        else:
            on_update(snapshot)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if entry in listeners:
                listeners.remove(entry)

        return unsubscribe

    def _notify(self, user_id: str, collection: str, document: Document) -> None:
        for on_update, on_error in list(self._listeners.get((user_id, collection), [])):
            try:
                on_update(document)
            except Exception as e:
                logger.warning(f"Subscriber for {collection} raised: {e}")
                on_error(e)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store for tests and local runs."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: dict[tuple[str, str], Document] = {}

    async def _read(self, user_id: str, collection: str) -> Document | None:
        document = self._documents.get((user_id, collection))
        return _copy(document) if document is not None else None

    async def _write(self, user_id: str, collection: str, document: Document) -> None:
        self._documents[(user_id, collection)] = _copy(document)


def _copy(document: Document) -> Document:
    return copy.deepcopy(document)
