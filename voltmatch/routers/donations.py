# voltmatch/routers/donations.py
from typing import List

from fastapi import APIRouter, Depends, status

from voltmatch.deps import get_engine
from voltmatch.schemas import Donation, DonationIn
from voltmatch.services.matching import MatchingEngine

router = APIRouter(prefix="/api/donations", tags=["donations"])

@router.post("", response_model=Donation, status_code=status.HTTP_201_CREATED)
async def create_donation(body: DonationIn, engine: MatchingEngine = Depends(get_engine)):
    return await engine.create_donation(
        engine.identity.current_user_id(),
        engine.identity.current_user_display_name(),
        body.battery_kind,
        body.quantity,
        body.location,
        notes=body.notes,
        battery=body.battery,
    )

@router.get("/available", response_model=List[Donation])
async def available(engine: MatchingEngine = Depends(get_engine)):
    return await engine.pools.refresh_available_donations()

@router.get("/mine", response_model=List[Donation])
async def mine(engine: MatchingEngine = Depends(get_engine)):
    await engine.pools.load_user_data(engine.require_user())
    return engine.pools.user_donations

@router.post("/{donation_id}/cancel", response_model=Donation)
async def cancel(donation_id: str, engine: MatchingEngine = Depends(get_engine)):
    donation = await engine.get_donation(donation_id)
    return await engine.cancel_donation(donation)
