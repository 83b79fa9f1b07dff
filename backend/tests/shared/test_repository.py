"""Tests for shared/repository.py."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest
from pydantic import BaseModel

from shared.repository import BaseRepository
from shared.transactions import InMemoryDocumentStore


class Sample(BaseModel):
    id: str
    amount: Decimal
    created_at: datetime


class SampleRepository(BaseRepository[Sample]):
    async def get(self, id: str) -> Optional[Sample]:
        snapshot = await self._store.get(f"samples/{id}")
        if not snapshot.exists:
            return None
        return Sample.model_validate(snapshot.data)


class TestBaseRepository:
    """Tests for BaseRepository base class."""

    def test_init_stores_document_store(self):
        """Should keep the document store."""
        store = InMemoryDocumentStore()
        repo = BaseRepository(store)
        assert repo._store is store
        assert repo.store is store

    def test_to_document_is_json_compatible(self):
        """Decimals and datetimes should serialize to strings."""
        sample = Sample(
            id="s1",
            amount=Decimal("12.50"),
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        document = BaseRepository.to_document(sample)
        assert document["amount"] == "12.50"
        assert document["created_at"].startswith("2026-01-01T00:00:00")

    @pytest.mark.asyncio
    async def test_subclass_maps_documents(self):
        """Subclass should map documents back to models."""
        store = InMemoryDocumentStore()
        store.seed(
            "samples/s1",
            {"id": "s1", "amount": "3.10", "created_at": "2026-01-01T00:00:00+00:00"},
        )
        repo = SampleRepository(store)

        sample = await repo.get("s1")

        assert sample is not None
        assert sample.amount == Decimal("3.10")
        assert await repo.get("missing") is None
