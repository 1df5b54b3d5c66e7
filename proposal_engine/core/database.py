"""Supabase persistence for proposal documents and client briefs."""

import logging
from typing import Optional, Dict, Any
from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from proposal_engine.core.config import get_settings
from proposal_engine.core.exceptions import StorageError
from proposal_engine.models import ClientBrief, utc_now

logger = logging.getLogger(__name__)


def _supabase_client() -> Client:
    settings = get_settings()
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise StorageError("Supabase credentials not configured")

    client = create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        options=ClientOptions(
            postgrest_client_timeout=30,
            storage_client_timeout=30
        )
    )
    logger.info("Supabase client initialized")
    return client


class DocumentStore:
    """
    Whole-document JSON store on a Supabase table.

    Each row holds ``id``, the JSON ``document`` and store-level
    ``created_at``/``updated_at`` columns. Documents are always replaced in
    whole; ``update`` merges top-level keys after reading the current row.
    Uses the sync Supabase client behind an async interface, like the rest
    of the application's I/O.
    """

    def __init__(
        self,
        table_name: Optional[str] = None,
        client: Optional[Client] = None,
        log: Optional[logging.Logger] = None
    ):
        self._table_name = table_name
        self._client = client
        self.log = log or logger

    @property
    def table_name(self) -> str:
        if self._table_name is None:
            self._table_name = get_settings().PROPOSALS_TABLE
        return self._table_name

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            self._client = _supabase_client()
        return self._client

    def _table(self):
        return self.client.table(self.table_name)

    # ===========================================
    # Read Operations
    # ===========================================

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a document by ID, or None when absent."""
        try:
            response = (
                self._table()
                .select("*")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            self.log.error(f"Failed to get document {doc_id} from {self.table_name}: {e}")
            raise StorageError(f"Failed to read document {doc_id}") from e

        if not response.data:
            self.log.debug(f"Document not found in {self.table_name}: {doc_id}")
            return None
        return response.data[0].get("document")

    # ===========================================
    # Write Operations
    # ===========================================

    async def set(self, doc_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Create or fully replace a document."""
        now = utc_now().isoformat()
        row = {"id": doc_id, "document": document, "updated_at": now}

        try:
            existing = (
                self._table()
                .select("id")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
            if existing.data:
                self._table().update(row).eq("id", doc_id).execute()
            else:
                row["created_at"] = now
                self._table().insert(row).execute()
        except Exception as e:
            self.log.error(f"Failed to save document {doc_id} to {self.table_name}: {e}")
            raise StorageError(f"Failed to save document {doc_id}") from e

        self.log.info(f"Saved document {doc_id} to {self.table_name}")
        return document

    async def update(self, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge top-level keys into an existing document. None when absent."""
        current = await self.get(doc_id)
        if current is None:
            return None
        merged = {**current, **changes}
        try:
            (
                self._table()
                .update({"document": merged, "updated_at": utc_now().isoformat()})
                .eq("id", doc_id)
                .execute()
            )
        except Exception as e:
            self.log.error(f"Failed to update document {doc_id} in {self.table_name}: {e}")
            raise StorageError(f"Failed to update document {doc_id}") from e

        self.log.info(f"Updated document {doc_id} in {self.table_name}")
        return merged

    async def delete(self, doc_id: str) -> bool:
        """Delete a document. Returns False when nothing was deleted."""
        try:
            response = self._table().delete().eq("id", doc_id).execute()
        except Exception as e:
            self.log.error(f"Failed to delete document {doc_id} from {self.table_name}: {e}")
            raise StorageError(f"Failed to delete document {doc_id}") from e

        deleted = bool(response.data)
        if deleted:
            self.log.info(f"Deleted document {doc_id} from {self.table_name}")
        return deleted


class ClientBriefRepository:
    """Read-only access to extracted client briefs."""

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        log: Optional[logging.Logger] = None
    ):
        self._store = store
        self.log = log or logger

    @property
    def store(self) -> DocumentStore:
        if self._store is None:
            self._store = DocumentStore(table_name=get_settings().CLIENT_BRIEFS_TABLE)
        return self._store

    async def get(self, brief_id: str) -> Optional[ClientBrief]:
        """Fetch a brief by ID, or None when absent."""
        document = await self.store.get(brief_id)
        if document is None:
            self.log.warning(f"Client brief not found: {brief_id}")
            return None
        return ClientBrief.model_validate({**document, "id": brief_id})


# Singleton instances
proposal_store = DocumentStore()
client_brief_repository = ClientBriefRepository()
