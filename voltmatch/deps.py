from fastapi import Depends

from voltmatch.core.config import settings
from voltmatch.core.identity import Identity
from voltmatch.core.security import get_identity
from voltmatch.repos.base import RecordStore
from voltmatch.services.matching import MatchingEngine
from voltmatch.services.pools import PoolViews

if settings.use_mongo:
    from voltmatch.repos.mongo import MongoRecordStore, get_db
    _store_singleton: RecordStore = MongoRecordStore(get_db())
else:
    from voltmatch.repos.inmemory import InMemoryRecordStore
    _store_singleton = InMemoryRecordStore()

def get_store() -> RecordStore:
    return _store_singleton

def get_engine(
    store: RecordStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
) -> MatchingEngine:
    # pools are per caller and per call; routes refresh what they scan
    return MatchingEngine(store, PoolViews(store), identity=identity)
