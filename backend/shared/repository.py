"""
Base repository class for document access.

Provides a common abstraction layer for all repositories, encapsulating
document store access and the document <-> model mapping conventions.
"""

from typing import Any, TypeVar, Generic

from pydantic import BaseModel

from .transactions import IDocumentStore


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for document operations:
    - Document store access via self._store
    - Generic type parameter for model type hints

    Subclasses own the path layout for their documents and handle
    dict-to-Pydantic model mapping internally.

    Example:
        class OrderRepository(BaseRepository[ConsultationOrder]):
            async def get(self, user_id: str, order_id: str) -> Optional[ConsultationOrder]:
                snapshot = await self._store.get(order_path(user_id, order_id))
                if not snapshot.exists:
                    return None
                return ConsultationOrder.model_validate(snapshot.data)
    """

    def __init__(self, store: IDocumentStore) -> None:
        """
        Initialize the repository with a document store.

        Args:
            store: Document store used for reads and transactions.
        """
        self._store = store

    @property
    def store(self) -> IDocumentStore:
        return self._store

    @staticmethod
    def to_document(model: BaseModel) -> dict[str, Any]:
        """Serialize a model into a JSON-compatible document body."""
        return model.model_dump(mode="json")
