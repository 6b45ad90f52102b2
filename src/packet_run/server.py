"""
Packet Run leaderboard API.

GET  /api/leaderboard  -> top 5 entries
POST /api/leaderboard  -> validate the integrity token and store a score
"""

import logging
from contextlib import asynccontextmanager
from typing import Iterable, List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from . import settings
from .integrity import InvalidNameError, sanitize_name, verify_hash
from .schemas import LeaderboardEntrySchema, ScoreSubmission, SubmitResponse
from .server_db import LeaderboardStore, RateLimiter

logging.basicConfig(level=logging.INFO)

leaderboard_router = APIRouter(prefix="/api")


def get_store(request: Request) -> LeaderboardStore:
    return request.app.state.store


def get_limiter(request: Request) -> RateLimiter:
    return request.app.state.limiter


def _client_id(request: Request) -> str:
    """Peer address, or the forwarded client when the peer is a trusted proxy."""
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and peer in request.app.state.trusted_proxies:
        return forwarded.split(",")[0].strip()
    return peer


async def _top_entries(store: LeaderboardStore) -> List[LeaderboardEntrySchema]:
    try:
        entries = await store.top()
    except RedisError as e:
        logging.error(f"Leaderboard read failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Internal Server Error")
    return [LeaderboardEntrySchema.model_validate(e) for e in entries]


@leaderboard_router.get("/leaderboard", response_model=List[LeaderboardEntrySchema])
async def read_leaderboard(store: LeaderboardStore = Depends(get_store)):
    return await _top_entries(store)


@leaderboard_router.post("/leaderboard", response_model=SubmitResponse,
                         status_code=status.HTTP_201_CREATED)
async def submit_score(
    submission: ScoreSubmission,
    request: Request,
    store: LeaderboardStore = Depends(get_store),
    limiter: RateLimiter = Depends(get_limiter),
):
    """Recomputes the integrity token and stores the score if it matches."""
    client_id = _client_id(request)
    try:
        limited = await limiter.hit(client_id)
    except RedisError as e:
        logging.error(f"Rate limiter unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Internal Server Error")
    if limited:
        logging.info(f"Rate limited {client_id}")
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                            detail="Too many submissions")

    try:
        name = sanitize_name(submission.name)
    except InvalidNameError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid name")

    if not verify_hash(name, submission.score, submission.duration, submission.hash,
                       request.app.state.salt):
        logging.info(f"Rejected submission from {client_id}: hash mismatch")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid hash")

    if submission.duration < submission.score * request.app.state.min_ms_per_point:
        logging.info(f"Rejected submission from {client_id}: implausible duration")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid duration")

    try:
        await store.add(name, submission.score)
    except RedisError as e:
        logging.error(f"Leaderboard write failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Internal Server Error")

    return SubmitResponse(ok=True, leaderboard=await _top_entries(store))


def create_app(
    redis: Optional[Redis] = None,
    salt: str = settings.score_salt,
    min_ms_per_point: int = settings.min_ms_per_point,
    rate_limit_max: int = settings.rate_limit_max,
    trusted_proxies: Iterable[str] = settings.trusted_proxies,
) -> FastAPI:
    """
    Builds the API. A Redis connection is opened from REDIS_URL unless one
    is passed in.
    """

    @asynccontextmanager
    async def lifespan(app):
        client = redis if redis is not None else Redis.from_url(
            settings.redis_url, decode_responses=True, health_check_interval=30)
        app.state.store = LeaderboardStore(client)
        app.state.limiter = RateLimiter(
            client, rate_limit_max, settings.rate_limit_window_sec)
        app.state.salt = salt
        app.state.min_ms_per_point = min_ms_per_point
        app.state.trusted_proxies = frozenset(trusted_proxies)
        try:
            yield
        finally:
            if redis is None:
                await client.aclose()
            logging.info("Stop Server")

    app = FastAPI(lifespan=lifespan)
    app.include_router(leaderboard_router)
    return app


def main():
    """Entry point for `packet-run-server`."""
    uvicorn.run(create_app(), host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
