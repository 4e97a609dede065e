"""
Matching engine: pairs battery donations with requests and runs the match lifecycle.

Requests discover donations, never the other way round: creating a request
scans the caller's cached pool of available donations and materializes one
pending match per compatible donation within the matching radius. The scan
follows the pool's iteration order and does no ranking.

Accepting or completing a match cascades the new state into the linked
donation and request. The match write and the two cascade writes are
independent single-record writes; when a cascade write fails, the writes
already committed are reverted in reverse order.
"""

import logging
from typing import List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel

from voltmatch.core.config import settings
from voltmatch.core.errors import (
    AuthError,
    CascadeError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from voltmatch.core.geo import distance_km
from voltmatch.core.identity import ANONYMOUS, ANONYMOUS_NAME, IdentityProvider
from voltmatch.core.states import (
    BatteryKind,
    DonationStatus,
    MatchStatus,
    RequestStatus,
    Urgency,
    can_transition,
    is_terminal,
    parse_enum,
)
from voltmatch.repos.base import RecordStore, DONATIONS, REQUESTS, MATCHES
from voltmatch.repos.codec import from_document, to_document, to_fields
from voltmatch.schemas import Battery, Donation, LatLng, Match, Request, utcnow
from voltmatch.services.pools import PoolViews, replace_by_id

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

Location = Union[LatLng, Tuple[float, float], dict]


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"quantity must be an integer, got {quantity!r}")
    if quantity <= 0:
        raise ValidationError(f"quantity must be positive, got {quantity}")
    return quantity

def _as_latlng(location: Location) -> LatLng:
    try:
        if isinstance(location, LatLng):
            return location
        if isinstance(location, dict):
            return LatLng(**location)
        lat, lng = location
        return LatLng(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError) as ex:
        raise ValidationError(f"invalid location {location!r}") from ex


class Compensations:
    """Undo log for a sequence of single-record writes."""

    def __init__(self, store: RecordStore):
        self.store = store
        self._undo: List[Tuple[str, str, dict]] = []

    def record(self, collection: str, record_id: str, previous_fields: dict) -> None:
        self._undo.append((collection, record_id, previous_fields))

    async def rollback(self, cause: Exception) -> None:
        errors: List[Exception] = []
        for collection, record_id, fields in reversed(self._undo):
            try:
                await self.store.patch(collection, record_id, fields)
            except StoreError as ex:
                logger.error("Compensating write on %s/%s failed: %s", collection, record_id, ex)
                errors.append(ex)
        self._undo.clear()
        if errors:
            raise CascadeError(cause, errors) from cause


class MatchingEngine:
    def __init__(
        self,
        store: RecordStore,
        pools: Optional[PoolViews] = None,
        identity: IdentityProvider = ANONYMOUS,
        radius_km: Optional[float] = None,
    ):
        self.store = store
        self.pools = pools if pools is not None else PoolViews(store)
        self.identity = identity
        self.radius_km = settings.match_radius_km if radius_km is None else radius_km

    def require_user(self) -> str:
        user_id = self.identity.current_user_id()
        if not user_id:
            raise AuthError("User not authenticated")
        return user_id

    # ===================== Lookups =====================

    async def _load(self, collection: str, model: Type[R], record_id: str) -> Optional[R]:
        docs = await self.store.query_equals(collection, "id", record_id)
        if not docs:
            return None
        return from_document(model, docs[0])

    async def _get(self, collection: str, model: Type[R], record_id: str) -> R:
        record = await self._load(collection, model, record_id)
        if record is None:
            raise NotFoundError(collection, record_id)
        return record

    async def get_donation(self, donation_id: str) -> Donation:
        return await self._get(DONATIONS, Donation, donation_id)

    async def get_request(self, request_id: str) -> Request:
        return await self._get(REQUESTS, Request, request_id)

    async def get_match(self, match_id: str) -> Match:
        return await self._get(MATCHES, Match, match_id)

    # ===================== Donations =====================

    async def create_donation(
        self,
        owner_id: str,
        owner_name: Optional[str],
        battery_kind: Union[BatteryKind, str],
        quantity: int,
        location: Location,
        notes: Optional[str] = None,
        battery: Optional[Battery] = None,
    ) -> Donation:
        if not owner_id:
            raise AuthError("User not authenticated")
        kind = parse_enum(BatteryKind, battery_kind)
        _check_quantity(quantity)
        if battery is not None and battery.kind != kind:
            raise ValidationError(
                f"battery record is {battery.kind.value}, donation is {kind.value}"
            )

        donation = Donation(
            owner_id=owner_id,
            owner_display_name=owner_name or ANONYMOUS_NAME,
            battery_kind=kind,
            quantity=quantity,
            location=_as_latlng(location),
            notes=notes,
            battery=battery,
            status=DonationStatus.available,
        )
        await self.store.put(DONATIONS, donation.id, to_document(donation))
        logger.info("Created donation %s (%s x%d) for %s", donation.id, kind.value, quantity, owner_id)

        self.pools.user_donations.append(donation)
        await self.pools.refresh_available_donations()
        return donation

    def _user_pool(self, collection: str) -> list:
        return self.pools.user_donations if collection == DONATIONS else self.pools.user_requests

    async def _set_status(self, collection: str, record: R, status) -> R:
        await self.store.patch(collection, record.id, to_fields({"status": status}))
        updated = record.model_copy(update={"status": status})
        replace_by_id(self._user_pool(collection), updated)
        return updated

    async def update_donation_status(
        self, donation: Donation, new_status: Union[DonationStatus, str]
    ) -> Donation:
        """Overwrite the status as given; transition validity is the caller's business."""
        status = parse_enum(DonationStatus, new_status)
        updated = await self._set_status(DONATIONS, donation, status)
        await self.pools.refresh_available_donations()
        return updated

    async def cancel_donation(self, donation: Donation) -> Donation:
        self.require_user()
        current = await self.get_donation(donation.id)
        if not can_transition(current.status, DonationStatus.cancelled):
            raise InvalidStateError(f"Cannot cancel donation {current.id}: it is {current.status.value}")
        return await self.update_donation_status(current, DonationStatus.cancelled)

    # ===================== Requests =====================

    async def create_request(
        self,
        owner_id: str,
        owner_name: Optional[str],
        battery_kind: Union[BatteryKind, str],
        quantity: int,
        location: Location,
        urgency: Union[Urgency, str] = Urgency.medium,
        notes: Optional[str] = None,
    ) -> Tuple[Request, List[Match]]:
        """
        Persist a new active request, then match it against the cached
        available-donation pool.

        The request stays committed when the scan fails afterwards. Returns
        the request and every match produced (possibly none).
        """
        if not owner_id:
            raise AuthError("User not authenticated")
        kind = parse_enum(BatteryKind, battery_kind)
        level = parse_enum(Urgency, urgency)
        _check_quantity(quantity)

        request = Request(
            owner_id=owner_id,
            owner_display_name=owner_name or ANONYMOUS_NAME,
            battery_kind=kind,
            quantity=quantity,
            location=_as_latlng(location),
            urgency=level,
            notes=notes,
            status=RequestStatus.active,
        )
        await self.store.put(REQUESTS, request.id, to_document(request))
        logger.info("Created request %s (%s x%d, %s) for %s",
                    request.id, kind.value, quantity, level.value, owner_id)

        self.pools.user_requests.append(request)
        await self.pools.refresh_active_requests()
        matches = await self.find_matches(request)
        return request, matches

    def _compatible(self, request: Request, donation: Donation) -> Optional[float]:
        """Distance to the donation if it can serve the request, else None."""
        if donation.battery_kind != request.battery_kind:
            return None
        if donation.status != DonationStatus.available:
            return None
        dist = distance_km(donation.location, request.location)
        if dist > self.radius_km:
            return None
        return dist

    async def find_matches(self, request: Request) -> List[Match]:
        candidates = []
        for donation in self.pools.available_donations:
            dist = self._compatible(request, donation)
            if dist is not None:
                candidates.append((donation, dist))

        matches: List[Match] = []
        for donation, dist in candidates:
            match = Match(
                request_id=request.id,
                donation_id=donation.id,
                request_owner_id=request.owner_id,
                donation_owner_id=donation.owner_id,
                request_owner_name=request.owner_display_name,
                donation_owner_name=donation.owner_display_name,
                battery_kind=request.battery_kind,
                quantity=min(request.quantity, donation.quantity),
                distance_km=dist,
                status=MatchStatus.pending,
            )
            await self.store.put(MATCHES, match.id, to_document(match))
            self.pools.user_matches.append(match)
            matches.append(match)

        logger.info(
            "Built %d matches for request %s (pool=%d, radius=%skm)",
            len(matches), request.id, len(self.pools.available_donations), self.radius_km,
        )
        return matches

    async def update_request_status(
        self, request: Request, new_status: Union[RequestStatus, str]
    ) -> Request:
        status = parse_enum(RequestStatus, new_status)
        updated = await self._set_status(REQUESTS, request, status)
        await self.pools.refresh_active_requests()
        return updated

    async def cancel_request(self, request: Request) -> Request:
        self.require_user()
        current = await self.get_request(request.id)
        if not can_transition(current.status, RequestStatus.cancelled):
            raise InvalidStateError(f"Cannot cancel request {current.id}: it is {current.status.value}")
        return await self.update_request_status(current, RequestStatus.cancelled)

    # ===================== Matches =====================

    async def accept_match(self, match: Match) -> Match:
        self.require_user()
        current = await self.get_match(match.id)
        if current.status != MatchStatus.pending:
            raise InvalidStateError(f"Cannot accept match {current.id}: it is {current.status.value}")
        return await self._transition(
            current, MatchStatus.accepted, DonationStatus.reserved, RequestStatus.matched,
        )

    async def complete_match(self, match: Match) -> Match:
        self.require_user()
        current = await self.get_match(match.id)
        if current.status != MatchStatus.accepted:
            raise InvalidStateError(f"Cannot complete match {current.id}: it is {current.status.value}")
        return await self._transition(
            current, MatchStatus.completed, DonationStatus.completed, RequestStatus.completed,
            completed_at=utcnow(),
        )

    async def cancel_match(self, match: Match) -> Match:
        # no cascade: donations and requests have no way back to available/active
        self.require_user()
        current = await self.get_match(match.id)
        if not can_transition(current.status, MatchStatus.cancelled):
            raise InvalidStateError(f"Cannot cancel match {current.id}: it is {current.status.value}")
        updated = current.model_copy(update={"status": MatchStatus.cancelled})
        await self.store.put(MATCHES, updated.id, to_document(updated))
        self.pools.upsert_user_match(updated)
        logger.info("Match %s cancelled", updated.id)
        return updated

    async def _transition(
        self,
        match: Match,
        status: MatchStatus,
        donation_status: DonationStatus,
        request_status: RequestStatus,
        completed_at=None,
    ) -> Match:
        changes = {"status": status}
        if completed_at is not None:
            changes["completed_at"] = completed_at
        updated = match.model_copy(update=changes)

        undo = Compensations(self.store)
        await self.store.put(MATCHES, updated.id, to_document(updated))
        undo.record(MATCHES, match.id, to_fields({"status": match.status, "completed_at": match.completed_at}))

        previous = []
        try:
            for collection, model, record_id, target in (
                (DONATIONS, Donation, match.donation_id, donation_status),
                (REQUESTS, Request, match.request_id, request_status),
            ):
                before = await self._cascade(collection, model, record_id, target, undo)
                if before is not None:
                    previous.append((collection, before))
        except StoreError as ex:
            logger.warning("Cascade for match %s failed, reverting: %s", match.id, ex)
            try:
                await undo.rollback(ex)
            finally:
                # the caller's own records go back to what was read before the cascade
                for collection, before in previous:
                    replace_by_id(self._user_pool(collection), before)
            raise

        self.pools.upsert_user_match(updated)
        await self.pools.refresh_available_donations()
        await self.pools.refresh_active_requests()
        logger.info("Match %s %s -> %s", match.id, match.status.value, status.value)
        return updated

    async def _cascade(
        self, collection: str, model: Type[R], record_id: str, status, undo: Compensations,
    ) -> Optional[R]:
        record = await self._load(collection, model, record_id)
        if record is None:
            logger.warning("Cascade skipped: %s/%s no longer exists", collection, record_id)
            return None
        if is_terminal(record.status):
            logger.warning("Cascade skipped: %s/%s is already %s",
                           collection, record_id, record.status.value)
            return None
        try:
            await self._set_status(collection, record, status)
        except NotFoundError:
            logger.warning("Cascade skipped: %s/%s vanished before update", collection, record_id)
            return None
        undo.record(collection, record_id, to_fields({"status": record.status}))
        return record
