# voltmatch/repos/base.py
from abc import ABC, abstractmethod
from typing import Any, Dict, List

DONATIONS = "donations"
REQUESTS = "requests"
MATCHES = "matches"

COLLECTIONS = (DONATIONS, REQUESTS, MATCHES)


class RecordStore(ABC):
    """
    Document store contract the engine writes through.

    Records are plain dicts keyed by their own "id". Implementations raise
    StoreError on transport failure and NotFoundError when patching a
    missing record. query_equals makes no ordering promise.
    """

    @abstractmethod
    async def put(self, collection: str, record_id: str, record: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def patch(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def query_equals(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        ...

    async def close(self) -> None:
        return None
