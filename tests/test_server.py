"""
Tests for the leaderboard API and its Redis store.
"""

import asyncio

from fastapi.testclient import TestClient

from packet_run.integrity import generate_hash
from packet_run.server import create_app
from packet_run.server_db import LeaderboardStore, RateLimiter, decode_member, encode_member

from conftest import TEST_SALT, FakeRedis


def submission(name="ana", score=3, duration=9000, salt=TEST_SALT, **overrides):
    body = {
        "name": name,
        "score": score,
        "duration": duration,
        "hash": generate_hash(name, score, duration, salt),
    }
    body.update(overrides)
    return body


class TestLeaderboardAPI:
    def test_empty_leaderboard(self, api_client):
        res = api_client.get("/api/leaderboard")
        assert res.status_code == 200
        assert res.json() == []

    def test_submit_and_read(self, api_client):
        res = api_client.post("/api/leaderboard", json=submission())
        assert res.status_code == 201
        data = res.json()
        assert data["ok"] is True
        assert [(e["name"], e["score"]) for e in data["leaderboard"]] == [("ana", 3)]

        board = api_client.get("/api/leaderboard").json()
        assert board[0]["name"] == "ana"
        assert board[0]["date"].endswith("Z")

    def test_top_five_only(self, api_client):
        for i, score in enumerate([10, 50, 30, 50, 5, 60]):
            body = submission(name=f"n{i}", score=score, duration=100000)
            assert api_client.post("/api/leaderboard", json=body).status_code == 201

        board = api_client.get("/api/leaderboard").json()
        assert [e["score"] for e in board] == [60, 50, 50, 30, 10]

    def test_hash_mismatch_rejected(self, api_client, fake_redis):
        body = submission(hash=generate_hash("ana", 30, 9000, TEST_SALT))
        res = api_client.post("/api/leaderboard", json=body)
        assert res.status_code == 400
        assert fake_redis.zsets == {}

    def test_wrong_salt_rejected(self, api_client):
        res = api_client.post("/api/leaderboard", json=submission(salt="guessed"))
        assert res.status_code == 400

    def test_name_is_sanitized_before_verifying(self, api_client):
        body = submission(name="ana")
        body["name"] = "  <ana>  "
        res = api_client.post("/api/leaderboard", json=body)
        assert res.status_code == 201
        assert res.json()["leaderboard"][0]["name"] == "ana"

    def test_blank_name_rejected(self, api_client):
        res = api_client.post("/api/leaderboard", json=submission(name="<>"))
        assert res.status_code == 400

    def test_implausible_duration_rejected(self, api_client):
        res = api_client.post("/api/leaderboard", json=submission(score=20, duration=500))
        assert res.status_code == 400

    def test_malformed_integers_rejected(self, api_client):
        for overrides in ({"score": 3.0}, {"score": "3"}, {"score": -1}, {"duration": "9000"}):
            res = api_client.post("/api/leaderboard", json=submission(**overrides))
            assert res.status_code == 422

    def test_rate_limited(self, fake_redis):
        app = create_app(redis=fake_redis, salt=TEST_SALT, rate_limit_max=2)
        with TestClient(app) as client:
            codes = [client.post("/api/leaderboard", json=submission()).status_code
                     for _ in range(3)]
        assert codes == [201, 201, 429]

    def test_forwarded_header_ignored_from_untrusted_peer(self, fake_redis):
        app = create_app(redis=fake_redis, salt=TEST_SALT, rate_limit_max=1)
        with TestClient(app) as client:
            codes = [
                client.post("/api/leaderboard", json=submission(),
                            headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
                for i in range(2)
            ]
        assert codes == [201, 429]
        assert list(fake_redis.counters) == ["ratelimit:testclient"]

    def test_forwarded_header_honored_from_trusted_proxy(self, fake_redis):
        app = create_app(redis=fake_redis, salt=TEST_SALT, rate_limit_max=1,
                         trusted_proxies={"testclient"})
        with TestClient(app) as client:
            codes = [
                client.post("/api/leaderboard", json=submission(),
                            headers={"X-Forwarded-For": f"10.0.0.{i}, 172.16.0.1"}).status_code
                for i in range(2)
            ]
        assert codes == [201, 201]
        assert sorted(fake_redis.counters) == ["ratelimit:10.0.0.0", "ratelimit:10.0.0.1"]


class TestLeaderboardStore:
    def test_member_round_trip_keeps_colons(self):
        member = encode_member("a:b", "2025-01-01T10:00:00.000Z", 1234)
        assert decode_member(member) == ({"name": "a:b", "date": "2025-01-01T10:00:00.000Z"}, 1234)

    def test_earlier_submission_wins_tie_at_cutoff(self):
        store = LeaderboardStore(FakeRedis())

        async def scenario():
            for ms, score in enumerate([50, 40, 30, 20]):
                await store.add(f"p{ms}", score, submitted_ms=ms)
            # "zed" sorts ahead of "amy" in Redis' own tie order
            await store.add("amy", 10, submitted_ms=100)
            await store.add("zed", 10, submitted_ms=200)
            return await store.top()

        top = asyncio.run(scenario())
        assert [e.name for e in top] == ["p0", "p1", "p2", "p3", "amy"]

    def test_reset_with_seed(self):
        redis = FakeRedis()
        store = LeaderboardStore(redis)

        async def scenario():
            await store.add("old", 99)
            await store.reset("pravin", 67)
            return await store.top()

        top = asyncio.run(scenario())
        assert [(e.name, e.score) for e in top] == [("pravin", 67)]

    def test_rate_limiter_window(self):
        redis = FakeRedis()
        limiter = RateLimiter(redis, limit=1, window_sec=60)

        async def scenario():
            return [await limiter.hit("1.2.3.4") for _ in range(2)]

        assert asyncio.run(scenario()) == [False, True]
        assert redis.expiries == {"ratelimit:1.2.3.4": 60}
