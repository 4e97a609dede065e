# voltmatch/routers/requests.py
from typing import List

from fastapi import APIRouter, Depends, status

from voltmatch.deps import get_engine
from voltmatch.schemas import Request, RequestIn, RequestCreated
from voltmatch.services.matching import MatchingEngine

router = APIRouter(prefix="/api/requests", tags=["requests"])

@router.post("", response_model=RequestCreated, status_code=status.HTTP_201_CREATED)
async def create_request(body: RequestIn, engine: MatchingEngine = Depends(get_engine)):
    # the scan only sees what the pool holds, so load it first
    await engine.pools.refresh_available_donations()
    request, matches = await engine.create_request(
        engine.identity.current_user_id(),
        engine.identity.current_user_display_name(),
        body.battery_kind,
        body.quantity,
        body.location,
        urgency=body.urgency,
        notes=body.notes,
    )
    return RequestCreated(request=request, matches=matches)

@router.get("/active", response_model=List[Request])
async def active(engine: MatchingEngine = Depends(get_engine)):
    return await engine.pools.refresh_active_requests()

@router.get("/mine", response_model=List[Request])
async def mine(engine: MatchingEngine = Depends(get_engine)):
    await engine.pools.load_user_data(engine.require_user())
    return engine.pools.user_requests

@router.post("/{request_id}/cancel", response_model=Request)
async def cancel(request_id: str, engine: MatchingEngine = Depends(get_engine)):
    request = await engine.get_request(request_id)
    return await engine.cancel_request(request)
