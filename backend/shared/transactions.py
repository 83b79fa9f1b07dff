"""
Transactional document store abstraction.

Every mutation that touches more than one of {order status, wallet balance,
earnings balance, expert presence} runs through ``run_transaction``:

1. The transaction function performs all of its reads first.
2. It validates its preconditions against those reads, raising a domain
   exception (which aborts the transaction without writes) if any fails.
3. It stages its writes.

On commit, the store checks that every document read is still at the
version that was read. If another writer got there first, the function is
run again from scratch with fresh reads, up to ``max_attempts`` times.

Documents are plain JSON-compatible dicts addressed by slash-separated
paths (``users/{user_id}/orders/{order_id}``). The collection group of a
document is the second-to-last path segment.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Optional,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from .exceptions import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (field, op, value) where op is "==" or "in"
Filter = tuple[str, str, Any]


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as read at a specific version (version 0 = absent)."""

    path: str
    data: Optional[dict[str, Any]]
    version: int = 0

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def get(self, field: str, default: Any = None) -> Any:
        """Read a (dotted) field, returning default when absent."""
        if self.data is None:
            return default
        return get_field(self.data, field, default)


class TransactionContentionError(ConflictError):
    """Raised when a transaction keeps conflicting until attempts run out."""

    def __init__(self, attempts: int):
        super().__init__(
            f"Transaction aborted after {attempts} conflicting attempts",
            code="TRANSACTION_CONTENTION",
            details={"attempts": attempts},
        )


class DocumentExistsError(ConflictError):
    """Raised when creating a document that already exists."""

    def __init__(self, path: str):
        super().__init__(
            f"Document already exists: {path}",
            code="DOCUMENT_EXISTS",
            details={"path": path},
        )


class CommitConflict(Exception):
    """A read went stale before commit. Internal signal to retry."""


def collection_group(path: str) -> str:
    """Return the collection a document path belongs to."""
    segments = path.strip("/").split("/")
    if len(segments) < 2 or len(segments) % 2 != 0:
        raise ValueError(f"Not a document path: {path}")
    return segments[-2]


def get_field(data: dict[str, Any], field: str, default: Any = None) -> Any:
    node: Any = data
    for part in field.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_field(data: dict[str, Any], field: str, value: Any) -> None:
    parts = field.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def matches(data: dict[str, Any], filters: Iterable[Filter]) -> bool:
    for field, op, value in filters:
        actual = get_field(data, field)
        if op == "==":
            if actual != value:
                return False
        elif op == "in":
            if actual not in value:
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


class TransactionContext:
    """
    Read/write handle passed to a transaction function.

    Reads are recorded with the version they observed. Writes are staged
    as full document bodies and only reach the store on commit.
    """

    def __init__(self, store: "BaseDocumentStore"):
        self._store = store
        self._reads: dict[str, int] = {}
        self._snapshots: dict[str, DocumentSnapshot] = {}
        self._writes: dict[str, dict[str, Any]] = {}

    @property
    def reads(self) -> dict[str, int]:
        return dict(self._reads)

    @property
    def writes(self) -> dict[str, dict[str, Any]]:
        return dict(self._writes)

    async def get(self, path: str) -> DocumentSnapshot:
        self._ensure_reading()
        snapshot = await self._store._load(path)
        self._record(snapshot)
        return snapshot

    async def query(
        self,
        group: str,
        filters: Iterable[Filter] = (),
        limit: Optional[int] = None,
    ) -> list[DocumentSnapshot]:
        self._ensure_reading()
        snapshots = await self._store._find(group, list(filters), limit)
        for snapshot in snapshots:
            self._record(snapshot)
        return snapshots

    def create(self, path: str, data: dict[str, Any]) -> None:
        """Stage a new document. Fails on commit if it exists by then."""
        known = self._snapshots.get(path)
        if known is not None and known.exists:
            raise DocumentExistsError(path)
        if path in self._writes:
            raise DocumentExistsError(path)
        self._reads.setdefault(path, 0)
        self._writes[path] = copy.deepcopy(data)

    def set(self, path: str, data: dict[str, Any]) -> None:
        """Stage a full replacement of a document."""
        self._writes[path] = copy.deepcopy(data)

    def update(self, path: str, fields: dict[str, Any]) -> None:
        """
        Stage a partial update using dotted field paths.

        The document must have been read in this transaction.
        """
        if path in self._writes:
            base = self._writes[path]
        else:
            known = self._snapshots.get(path)
            if known is None:
                raise RuntimeError(f"Document must be read before update: {path}")
            if not known.exists:
                raise NotFoundError(
                    f"Cannot update missing document: {path}",
                    code="DOCUMENT_NOT_FOUND",
                    details={"path": path},
                )
            base = copy.deepcopy(known.data)
        for field, value in fields.items():
            set_field(base, field, copy.deepcopy(value))
        self._writes[path] = base

    def _ensure_reading(self) -> None:
        if self._writes:
            raise RuntimeError("All reads must happen before any write in a transaction")

    def _record(self, snapshot: DocumentSnapshot) -> None:
        prior = self._reads.get(snapshot.path)
        if prior is not None and prior != snapshot.version:
            raise CommitConflict(snapshot.path)
        self._reads[snapshot.path] = snapshot.version
        self._snapshots[snapshot.path] = snapshot


TransactionFn = Callable[[TransactionContext], Awaitable[T]]


@runtime_checkable
class IDocumentStore(Protocol):
    """
    Interface for the shared document store.

    Services depend on this protocol so the same billing logic runs
    against Supabase in production and an in-memory store in tests.
    """

    async def get(self, path: str) -> DocumentSnapshot:
        """Read a single document outside any transaction."""
        ...

    async def query(
        self,
        group: str,
        filters: Iterable[Filter] = (),
        limit: Optional[int] = None,
    ) -> list[DocumentSnapshot]:
        """Find documents in a collection group matching all filters."""
        ...

    async def run_transaction(
        self,
        fn: TransactionFn,
        max_attempts: Optional[int] = None,
    ) -> Any:
        """
        Run fn atomically, retrying on optimistic-concurrency conflicts.

        Raises:
            TransactionContentionError: If every attempt conflicted
            Any exception raised by fn (no writes are applied)
        """
        ...


class BaseDocumentStore:
    """Shared retry loop. Subclasses provide _load, _find and _commit."""

    def __init__(self, max_attempts: int = 5):
        self._max_attempts = max_attempts

    async def get(self, path: str) -> DocumentSnapshot:
        return await self._load(path)

    async def query(
        self,
        group: str,
        filters: Iterable[Filter] = (),
        limit: Optional[int] = None,
    ) -> list[DocumentSnapshot]:
        return await self._find(group, list(filters), limit)

    async def run_transaction(
        self,
        fn: TransactionFn,
        max_attempts: Optional[int] = None,
    ) -> Any:
        attempts = max_attempts or self._max_attempts
        for attempt in range(1, attempts + 1):
            tx = TransactionContext(self)
            try:
                result = await fn(tx)
                await self._commit(tx.reads, tx.writes)
                return result
            except CommitConflict as e:
                logger.debug(
                    f"Transaction conflict on {e} (attempt {attempt}/{attempts})"
                )
        logger.warning(f"Transaction gave up after {attempts} attempts")
        raise TransactionContentionError(attempts)

    async def _load(self, path: str) -> DocumentSnapshot:
        raise NotImplementedError

    async def _find(
        self,
        group: str,
        filters: list[Filter],
        limit: Optional[int],
    ) -> list[DocumentSnapshot]:
        raise NotImplementedError

    async def _commit(self, reads: dict[str, int], writes: dict[str, dict[str, Any]]) -> None:
        raise NotImplementedError


class InMemoryDocumentStore(BaseDocumentStore):
    """
    Process-local document store with versioned optimistic commits.

    Every read yields to the event loop, so two coroutines running
    transactions against the same documents genuinely interleave. Commit
    validation and application happen without an await in between, which
    makes them atomic with respect to other coroutines.
    """

    def __init__(self, max_attempts: int = 5):
        super().__init__(max_attempts)
        self._docs: dict[str, tuple[int, dict[str, Any]]] = {}

    def seed(self, path: str, data: dict[str, Any]) -> None:
        """Write a document directly, bypassing transactions."""
        version = self._docs.get(path, (0, {}))[0]
        self._docs[path] = (version + 1, copy.deepcopy(data))

    async def _load(self, path: str) -> DocumentSnapshot:
        await asyncio.sleep(0)
        return self._snapshot(path)

    async def _find(
        self,
        group: str,
        filters: list[Filter],
        limit: Optional[int],
    ) -> list[DocumentSnapshot]:
        await asyncio.sleep(0)
        found = []
        for path in sorted(self._docs):
            if collection_group(path) != group:
                continue
            version, data = self._docs[path]
            if matches(data, filters):
                found.append(DocumentSnapshot(path, copy.deepcopy(data), version))
                if limit is not None and len(found) >= limit:
                    break
        return found

    async def _commit(self, reads: dict[str, int], writes: dict[str, dict[str, Any]]) -> None:
        for path, version in reads.items():
            current = self._docs.get(path, (0, None))[0]
            if current != version:
                raise CommitConflict(path)
        for path, data in writes.items():
            version = self._docs.get(path, (0, None))[0]
            self._docs[path] = (version + 1, copy.deepcopy(data))

    def _snapshot(self, path: str) -> DocumentSnapshot:
        entry = self._docs.get(path)
        if entry is None:
            return DocumentSnapshot(path, None, 0)
        return DocumentSnapshot(path, copy.deepcopy(entry[1]), entry[0])
