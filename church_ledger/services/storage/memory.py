"""
In-Memory Storage Implementation

Used by the tests and by the app when Sheets storage is disabled.
Records are deep-copied on the way in and out so callers never share
state with the store.
"""

from typing import Optional

from pydantic import BaseModel

from church_ledger.services.storage.interface import (
    Collection,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed ledger storage; insertion order is storage order."""

    def __init__(self):
        self._data: dict[Collection, dict[str, BaseModel]] = {
            collection: {} for collection in Collection
        }

    async def add(self, collection: Collection, record: BaseModel) -> bool:
        table = self._data[collection]
        if record.id in table:
            raise DuplicateError(f"{collection.value} record already exists: {record.id}")
        table[record.id] = record.model_copy(deep=True)
        return True

    async def get(self, collection: Collection, record_id: str) -> Optional[BaseModel]:
        record = self._data[collection].get(record_id)
        return record.model_copy(deep=True) if record else None

    async def update(self, collection: Collection, record: BaseModel) -> bool:
        table = self._data[collection]
        if record.id not in table:
            raise NotFoundError(f"{collection.value} record not found: {record.id}")
        table[record.id] = record.model_copy(deep=True)
        return True

    async def delete(self, collection: Collection, record_id: str) -> bool:
        return self._data[collection].pop(record_id, None) is not None

    async def list_all(self, collection: Collection) -> list[BaseModel]:
        return [record.model_copy(deep=True) for record in self._data[collection].values()]
