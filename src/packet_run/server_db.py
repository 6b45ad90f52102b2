"""
server_db.py: Redis layer for leaderboard persistence and submission rate limits.

Entries live in one sorted set keyed by score. Each member is the JSON
{name, date} followed by ":<epoch ms>", which keeps members unique and
records submission order for tie-breaking.
"""

import argparse
import asyncio
import json
import logging
import time
from typing import List, Optional, Tuple

from redis.asyncio import Redis

from .constants import LEADERBOARD_KEY, LEADERBOARD_SIZE
from .data_models import LeaderboardEntry, iso_timestamp

logger = logging.getLogger(__name__)


def encode_member(name: str, date: str, submitted_ms: int) -> str:
    return f"{json.dumps({'name': name, 'date': date})}:{submitted_ms}"


def decode_member(member: str) -> Tuple[dict, int]:
    """Returns ({name, date}, submitted_ms)."""
    body, _, suffix = member.rpartition(":")
    return json.loads(body), int(suffix)


class LeaderboardStore:
    """Handles all interaction with the leaderboard sorted set."""

    def __init__(self, redis: Redis, key: str = LEADERBOARD_KEY):
        self.redis = redis
        self.key = key

    async def top(self, size: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
        """
        Fetches the top entries, highest score first.
        Equal scores are ordered by submission time, earliest first.
        """
        rows = await self.redis.zrevrange(self.key, 0, size - 1, withscores=True)
        if len(rows) == size:
            # Pull every member tied with last place so the tie rule decides who stays
            cutoff = rows[-1][1]
            rows = await self.redis.zrevrangebyscore(self.key, "+inf", cutoff, withscores=True)

        ranked = []
        for member, score in rows:
            try:
                data, submitted_ms = decode_member(member)
            except (ValueError, TypeError):
                logger.warning(f"Skipping malformed leaderboard member: {member!r}")
                continue
            entry = LeaderboardEntry(name=data.get("name", ""), score=int(score),
                                     date=data.get("date", ""))
            ranked.append((-entry.score, submitted_ms, entry))

        ranked.sort(key=lambda row: (row[0], row[1]))
        return [entry for _, _, entry in ranked[:size]]

    async def add(self, name: str, score: int, submitted_ms: Optional[int] = None) -> LeaderboardEntry:
        submitted_ms = submitted_ms if submitted_ms is not None else int(time.time() * 1000)
        entry = LeaderboardEntry(name=name, score=score)
        await self.redis.zadd(self.key, {encode_member(name, entry.date, submitted_ms): score})
        logger.info(f"Added {name!r} with score {score}")
        return entry

    async def reset(self, seed_name: Optional[str] = None, seed_score: Optional[int] = None):
        """Clears the leaderboard, optionally seeding a single entry."""
        await self.redis.delete(self.key)
        logger.info("Leaderboard cleared")
        if seed_name is not None and seed_score is not None:
            await self.add(seed_name, seed_score)


class RateLimiter:
    """Fixed-window submission counter per client address."""

    def __init__(self, redis: Redis, limit: int, window_sec: int, prefix: str = "ratelimit"):
        self.redis = redis
        self.limit = limit
        self.window_sec = window_sec
        self.prefix = prefix

    async def hit(self, client_id: str) -> bool:
        """Counts one submission. Returns True if the client is over the limit."""
        key = f"{self.prefix}:{client_id}"
        count = await self.redis.incr(key)
        if count == 1:
            await self.redis.expire(key, self.window_sec)
        return count > self.limit


async def _reset(redis_url: str, seed_name: Optional[str], seed_score: Optional[int]):
    redis = Redis.from_url(redis_url, decode_responses=True)
    try:
        store = LeaderboardStore(redis)
        await store.reset(seed_name, seed_score)
        for rank, entry in enumerate(await store.top(), start=1):
            print(f"{rank}. {entry.name} — {entry.score} ({entry.date})")
    finally:
        await redis.aclose()


def reset_main():
    """Entry point for `packet-run-reset`."""
    from . import settings

    parser = argparse.ArgumentParser(description="Clear the Packet Run leaderboard.")
    parser.add_argument("--seed-name", help="Name of a single entry to add after clearing")
    parser.add_argument("--seed-score", type=int, help="Score of the seeded entry")
    parser.add_argument("--redis-url", default=settings.redis_url)
    args = parser.parse_args()

    if (args.seed_name is None) != (args.seed_score is None):
        parser.error("--seed-name and --seed-score must be given together")

    logging.basicConfig(level=logging.INFO)
    asyncio.run(_reset(args.redis_url, args.seed_name, args.seed_score))


if __name__ == "__main__":
    reset_main()
