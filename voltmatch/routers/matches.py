# voltmatch/routers/matches.py
from typing import List

from fastapi import APIRouter, Depends

from voltmatch.deps import get_engine
from voltmatch.schemas import Match
from voltmatch.services.matching import MatchingEngine

router = APIRouter(prefix="/api/matches", tags=["matches"])

@router.get("/mine", response_model=List[Match])
async def mine(engine: MatchingEngine = Depends(get_engine)):
    await engine.pools.load_user_data(engine.require_user())
    return engine.pools.user_matches

@router.post("/{match_id}/accept", response_model=Match)
async def accept(match_id: str, engine: MatchingEngine = Depends(get_engine)):
    return await engine.accept_match(await engine.get_match(match_id))

@router.post("/{match_id}/complete", response_model=Match)
async def complete(match_id: str, engine: MatchingEngine = Depends(get_engine)):
    return await engine.complete_match(await engine.get_match(match_id))

@router.post("/{match_id}/cancel", response_model=Match)
async def cancel(match_id: str, engine: MatchingEngine = Depends(get_engine)):
    return await engine.cancel_match(await engine.get_match(match_id))
