# voltmatch/repos/inmemory.py
import copy
from typing import Any, Dict, List

from voltmatch.core.errors import NotFoundError, StoreError
from voltmatch.repos.base import RecordStore, COLLECTIONS


class InMemoryRecordStore(RecordStore):
    """Process-local store. Every read and write copies, so nothing aliases stored state."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {name: {} for name in COLLECTIONS}

    def _col(self, collection: str) -> Dict[str, dict]:
        try:
            return self.collections[collection]
        except KeyError:
            raise StoreError(f"unknown collection {collection!r}") from None

    async def put(self, collection: str, record_id: str, record: Dict[str, Any]) -> None:
        doc = copy.deepcopy(record)
        doc["id"] = record_id
        self._col(collection)[record_id] = doc

    async def patch(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        col = self._col(collection)
        if record_id not in col:
            raise NotFoundError(collection, record_id)
        col[record_id].update(copy.deepcopy(fields))

    async def query_equals(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        vals = self._col(collection).values()
        return [copy.deepcopy(d) for d in vals if d.get(field) == value]
