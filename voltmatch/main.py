# voltmatch/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request as HttpRequest
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voltmatch.core.config import settings
from voltmatch.core.errors import (
    MatchingError,
    ValidationError,
    AuthError,
    NotFoundError,
    InvalidStateError,
    StoreError,
)
from voltmatch.deps import get_store
from voltmatch.routers import donations as donations_router
from voltmatch.routers import requests as requests_router
from voltmatch.routers import matches as matches_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.use_mongo:
        from voltmatch.core.indexes import ensure_indexes
        from voltmatch.repos.mongo import get_db
        await ensure_indexes(get_db())
        logger.info("Mongo indexes ensured on %s", settings.mongo_db)
    yield
    await get_store().close()


app = FastAPI(lifespan=lifespan, title="VoltMatch API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    ValidationError: 422,
    AuthError: 401,
    NotFoundError: 404,
    InvalidStateError: 409,
    StoreError: 503,
}

def status_for(exc: MatchingError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500

@app.exception_handler(MatchingError)
async def matching_error_handler(request: HttpRequest, exc: MatchingError):
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc), "error": type(exc).__name__}, status_code=code)

# ---------------- Include routers ----------------
app.include_router(donations_router.router)     # /api/donations
app.include_router(requests_router.router)      # /api/requests
app.include_router(matches_router.router)       # /api/matches

# Health
@app.get("/health")
def health():
    return {"ok": True}
