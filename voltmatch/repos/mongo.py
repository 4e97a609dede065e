# voltmatch/repos/mongo.py
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from voltmatch.core.config import settings
from voltmatch.core.errors import NotFoundError, StoreError
from voltmatch.repos.base import RecordStore

# --------------------------------------------------
# MongoDB Connection
# --------------------------------------------------
@lru_cache(maxsize=1)
def get_client() -> AsyncIOMotorClient:
    # Cached to play nicely with uvicorn --reload
    return AsyncIOMotorClient(settings.mongo_uri, uuidRepresentation="standard", tz_aware=True)

def get_db() -> AsyncIOMotorDatabase:
    return get_client()[settings.mongo_db]


class MongoRecordStore(RecordStore):
    """Documents are stored with _id == id; the id field is kept for equality queries."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def put(self, collection: str, record_id: str, record: Dict[str, Any]) -> None:
        doc = {**record, "id": record_id, "_id": record_id}
        try:
            await self.db[collection].replace_one({"_id": record_id}, doc, upsert=True)
        except PyMongoError as ex:
            raise StoreError(f"put {collection}/{record_id} failed: {ex}") from ex

    async def patch(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        try:
            res = await self.db[collection].update_one({"_id": record_id}, {"$set": dict(fields)})
        except PyMongoError as ex:
            raise StoreError(f"patch {collection}/{record_id} failed: {ex}") from ex
        if res.matched_count == 0:
            raise NotFoundError(collection, record_id)

    async def query_equals(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        try:
            async for d in self.db[collection].find({field: value}):
                d.pop("_id", None)
                items.append(d)
        except PyMongoError as ex:
            raise StoreError(f"query {collection}.{field} failed: {ex}") from ex
        return items

    async def close(self) -> None:
        self.db.client.close()
