"""
Database access for the document store.

Provides the Supabase client factory and a document store backed by a
single ``documents`` table (path, collection_group, data jsonb, version).
Transactions commit through the ``commit_document_transaction`` database
function, which re-checks every read version under row locks before
applying the writes (see migrations/001_documents.sql).
"""

import copy
import logging
from typing import Any, Optional

from supabase import create_client, Client

from .config import get_settings
from .transactions import (
    BaseDocumentStore,
    CommitConflict,
    DocumentSnapshot,
    Filter,
    InMemoryDocumentStore,
    IDocumentStore,
    collection_group,
    matches,
)

logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "documents"
COMMIT_FUNCTION = "commit_document_transaction"

# Module-level caches
_service_client: Optional[Client] = None
_document_store: Optional[IDocumentStore] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    Billing writes always run with the service role; end users never
    write documents directly.

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def _json_path(field: str) -> str:
    parts = field.split(".")
    if len(parts) == 1:
        return f"data->>{field}"
    return "data->" + "->".join(parts[:-1]) + f"->>{parts[-1]}"


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class SupabaseDocumentStore(BaseDocumentStore):
    """Document store persisted in Postgres through Supabase."""

    def __init__(self, db: Client, max_attempts: int = 5):
        super().__init__(max_attempts)
        self._db = db

    async def _load(self, path: str) -> DocumentSnapshot:
        result = (
            self._db.table(DOCUMENTS_TABLE)
            .select("path, data, version")
            .eq("path", path)
            .execute()
        )
        if not result.data:
            return DocumentSnapshot(path, None, 0)
        row = result.data[0]
        return DocumentSnapshot(row["path"], row["data"], row["version"])

    async def _find(
        self,
        group: str,
        filters: list[Filter],
        limit: Optional[int],
    ) -> list[DocumentSnapshot]:
        query = (
            self._db.table(DOCUMENTS_TABLE)
            .select("path, data, version")
            .eq("collection_group", group)
        )
        for field, op, value in filters:
            if op == "==":
                query = query.eq(_json_path(field), _as_text(value))
            elif op == "in":
                query = query.in_(_json_path(field), [_as_text(v) for v in value])
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
        query = query.order("path")
        if limit is not None:
            query = query.limit(limit)
        result = query.execute()

        # Text comparison in Postgres can over-match (e.g. numbers); re-check typed values
        return [
            DocumentSnapshot(row["path"], row["data"], row["version"])
            for row in result.data or []
            if matches(row["data"], filters)
        ]

    async def _commit(self, reads: dict[str, int], writes: dict[str, dict[str, Any]]) -> None:
        if not writes:
            return
        payload = {
            "p_reads": [{"path": path, "version": version} for path, version in reads.items()],
            "p_writes": [
                {
                    "path": path,
                    "collection_group": collection_group(path),
                    "data": copy.deepcopy(data),
                }
                for path, data in writes.items()
            ],
        }
        result = self._db.rpc(COMMIT_FUNCTION, payload).execute()
        if result.data is not True:
            raise CommitConflict(",".join(sorted(writes)))


def get_document_store() -> IDocumentStore:
    """
    Get the configured document store singleton.

    DOCUMENT_STORE=supabase uses Postgres through Supabase; anything else
    uses the in-memory store (local development and tests).
    """
    global _document_store

    if _document_store is None:
        settings = get_settings()
        if settings.document_store == "supabase":
            _document_store = SupabaseDocumentStore(
                get_supabase_client(),
                max_attempts=settings.transaction_max_attempts,
            )
        else:
            logger.info("Using in-memory document store")
            _document_store = InMemoryDocumentStore(
                max_attempts=settings.transaction_max_attempts,
            )

    return _document_store


def reset_client_cache() -> None:
    """
    Reset the cached database client and document store.

    Useful for testing or when configuration changes.
    """
    global _service_client, _document_store
    _service_client = None
    _document_store = None
