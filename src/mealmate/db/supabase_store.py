"""
Supabase-backed document store.

One row per (user_id, collection) in the documents table:

    user_id    text
    collection text
    data       jsonb
    updated_at timestamptz
    primary key (user_id, collection)
"""

from datetime import UTC, datetime

from supabase import Client

from mealmate.config import settings
from mealmate.db.adapter import Document, DocumentStore
from mealmate.db.client import get_client


class SupabaseDocumentStore(DocumentStore):
    """DocumentStore over a single Supabase table."""

    def __init__(self, client: Client | None = None, table: str | None = None) -> None:
        super().__init__()
        self._client = client
        self._table = table or settings.documents_table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def _read(self, user_id: str, collection: str) -> Document | None:
        response = (
            self.client.table(self._table)
            .select("data")
            .eq("user_id", user_id)
            .eq("collection", collection)
            .maybe_single()
            .execute()
        )
        if response is None or not response.data:
            return None
        return response.data.get("data")

    async def _write(self, user_id: str, collection: str, document: Document) -> None:
        self.client.table(self._table).upsert(
            {
                "user_id": user_id,
                "collection": collection,
                "data": document,
                "updated_at": datetime.now(UTC).isoformat(),
            },
            on_conflict="user_id,collection",
        ).execute()
