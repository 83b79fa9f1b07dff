"""
Shared infrastructure for the Consult Ledger backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory and document store selection
- transactions: Transactional document store abstraction
- exceptions: Base exception classes

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import (
    SupabaseDocumentStore,
    get_document_store,
    get_supabase_client,
    reset_client_cache,
)
from .exceptions import (
    ConsultLedgerError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    FatalError,
)
from .models import AuthenticatedUser, RequestContext, Trigger
from .transactions import (
    DocumentSnapshot,
    IDocumentStore,
    InMemoryDocumentStore,
    TransactionContext,
    TransactionContentionError,
)

__all__ = [
    "Settings",
    "get_settings",
    "SupabaseDocumentStore",
    "get_document_store",
    "get_supabase_client",
    "reset_client_cache",
    "ConsultLedgerError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "FatalError",
    "AuthenticatedUser",
    "RequestContext",
    "Trigger",
    "DocumentSnapshot",
    "IDocumentStore",
    "InMemoryDocumentStore",
    "TransactionContext",
    "TransactionContentionError",
]
