# voltmatch/core/indexes.py
from pymongo import ASCENDING

from voltmatch.repos.base import DONATIONS, REQUESTS, MATCHES

async def ensure_index(col, keys, name: str, **kwargs):
    existing = [ix["name"] async for ix in col.list_indexes()]
    if name in existing:
        return
    await col.create_index(keys, name=name, **kwargs)

async def ensure_indexes(db):
    # Pool views query by status and by owner
    await ensure_index(db[DONATIONS], [("status", ASCENDING)], "status_1")
    await ensure_index(db[REQUESTS], [("status", ASCENDING)], "status_1")
    await ensure_index(db[DONATIONS], [("owner_id", ASCENDING)], "owner_id_1")
    await ensure_index(db[REQUESTS], [("owner_id", ASCENDING)], "owner_id_1")
    # Record lookups go through the "id" field, not _id
    for name in (DONATIONS, REQUESTS, MATCHES):
        await ensure_index(db[name], [("id", ASCENDING)], "id_1", unique=True)
    # Matches lookup
    await ensure_index(db[MATCHES], [("request_owner_id", ASCENDING)], "request_owner_id_1")
    await ensure_index(db[MATCHES], [("donation_owner_id", ASCENDING)], "donation_owner_id_1")
    await ensure_index(db[MATCHES], [("donation_id", ASCENDING)], "donation_id_1")
    await ensure_index(db[MATCHES], [("request_id", ASCENDING)], "request_id_1")
