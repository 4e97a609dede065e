"""
Pool views: in-memory snapshots of store records.

Each collection is replaced wholesale by a fresh store query on refresh.
Nothing here is authoritative and nothing refreshes on its own; callers
refresh whatever they need to observe after a write.
"""

import logging
from typing import List, TypeVar

from pydantic import BaseModel

from voltmatch.core.states import DonationStatus, RequestStatus
from voltmatch.repos.base import RecordStore, DONATIONS, REQUESTS, MATCHES
from voltmatch.repos.codec import from_document
from voltmatch.schemas import Donation, Request, Match

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


def replace_by_id(records: List[R], updated: R) -> bool:
    """Swap the record with updated.id in place; False if it isn't in the list."""
    for i, rec in enumerate(records):
        if rec.id == updated.id:
            records[i] = updated
            return True
    return False


class PoolViews:
    def __init__(self, store: RecordStore):
        self.store = store
        self.available_donations: List[Donation] = []
        self.active_requests: List[Request] = []
        self.user_donations: List[Donation] = []
        self.user_requests: List[Request] = []
        self.user_matches: List[Match] = []

    async def refresh_available_donations(self) -> List[Donation]:
        docs = await self.store.query_equals(DONATIONS, "status", DonationStatus.available.value)
        self.available_donations = [from_document(Donation, d) for d in docs]
        return self.available_donations

    async def refresh_active_requests(self) -> List[Request]:
        docs = await self.store.query_equals(REQUESTS, "status", RequestStatus.active.value)
        self.active_requests = [from_document(Request, d) for d in docs]
        return self.active_requests

    async def load_user_data(self, user_id: str) -> None:
        if not user_id:
            return
        donations = await self.store.query_equals(DONATIONS, "owner_id", user_id)
        requests = await self.store.query_equals(REQUESTS, "owner_id", user_id)

        # a user is party to a match from either side
        matches: List[Match] = []
        seen = set()
        for field in ("request_owner_id", "donation_owner_id"):
            for doc in await self.store.query_equals(MATCHES, field, user_id):
                if doc["id"] in seen:
                    continue
                seen.add(doc["id"])
                matches.append(from_document(Match, doc))

        self.user_donations = [from_document(Donation, d) for d in donations]
        self.user_requests = [from_document(Request, r) for r in requests]
        self.user_matches = matches
        logger.debug(
            "Loaded user %s: %d donations, %d requests, %d matches",
            user_id, len(self.user_donations), len(self.user_requests), len(self.user_matches),
        )

    def upsert_user_match(self, match: Match) -> None:
        if not replace_by_id(self.user_matches, match):
            self.user_matches.append(match)
