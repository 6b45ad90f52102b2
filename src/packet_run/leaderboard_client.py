"""
leaderboard_client.py: Score submission flow between the game and the leaderboard API.

Remote reads are authoritative and overwrite the local cache. The local
store is used only after an explicit failure (404, network error, or an
unexpected response), and the cache is flagged stale while it serves
local-only data.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import requests

from .constants import LEADERBOARD_SIZE, REQUEST_TIMEOUT, DEFAULT_SCORE_SALT
from .data_models import GameResult, LeaderboardEntry
from .integrity import generate_hash, sanitize_name, validate_score
from .leaderboard import insert_entry, qualifies, rank_entries, target_message
from .local_store import LocalStore

logger = logging.getLogger(__name__)


class RemoteUnavailable(Exception):
    """The leaderboard API could not be used; fall back to local data."""


class SubmitStatus(str, Enum):
    SUBMITTED = "submitted"
    SAVED_LOCALLY = "saved_locally"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmitOutcome:
    status: SubmitStatus
    message: str


@dataclass(frozen=True)
class Qualification:
    qualifies: bool
    message: Optional[str] = None


class LeaderboardCache:
    """The leaderboard currently on display. Shared with the render thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[LeaderboardEntry] = []
        self._stale = False

    def replace(self, entries: List[LeaderboardEntry], stale: bool):
        with self._lock:
            self._entries = list(entries)
            self._stale = stale

    def snapshot(self) -> Tuple[List[LeaderboardEntry], bool]:
        with self._lock:
            return list(self._entries), self._stale


class LeaderboardClient:
    """Thin HTTP wrapper around GET/POST on the leaderboard endpoint."""

    def __init__(self, api_url: str, session: Optional[requests.Session] = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.api_url = api_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self) -> List[LeaderboardEntry]:
        try:
            response = self.session.get(self.api_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteUnavailable(f"Leaderboard request failed: {e}") from e

        if not response.ok:
            raise RemoteUnavailable(f"Leaderboard returned HTTP {response.status_code}")

        try:
            payload = response.json() or []
            return [LeaderboardEntry.from_dict(item) for item in payload]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteUnavailable(f"Malformed leaderboard response: {e}") from e

    def submit(self, name: str, score: int, duration: int, token: str) -> requests.Response:
        """Raises requests.RequestException on transport failure."""
        return self.session.post(
            self.api_url,
            json={"name": name, "score": score, "duration": duration, "hash": token},
            timeout=self.timeout,
        )


class ScoreReporter:
    """
    Runs the post-game flow: refresh the board, decide whether the run
    qualifies, and submit it with its integrity token.
    """

    def __init__(self, client: LeaderboardClient, store: LocalStore,
                 salt: str = DEFAULT_SCORE_SALT, size: int = LEADERBOARD_SIZE):
        self.client = client
        self.store = store
        self.salt = salt
        self.size = size
        self.cache = LeaderboardCache()

    def refresh(self) -> List[LeaderboardEntry]:
        try:
            entries = rank_entries(self.client.fetch(), self.size)
        except RemoteUnavailable as e:
            logger.info(f"{e}; using local leaderboard")
            entries = rank_entries(self.store.load_leaderboard(), self.size)
            self.cache.replace(entries, stale=True)
            return entries

        self.store.save_leaderboard(entries)
        self.cache.replace(entries, stale=False)
        return entries

    def check(self, result: GameResult) -> Qualification:
        entries = self.refresh()
        if result.score <= 0:
            return Qualification(False, target_message(entries, self.size))
        if qualifies(result.score, entries, self.size):
            return Qualification(True)
        return Qualification(False, target_message(entries, self.size))

    def submit(self, name: str, result: GameResult) -> SubmitOutcome:
        """
        Raises InvalidScoreError or InvalidNameError before any network call.
        Every other failure is reported through the returned outcome.
        """
        score = validate_score(result.score)
        clean_name = sanitize_name(name)
        token = generate_hash(clean_name, score, result.duration_ms, self.salt)

        try:
            response = self.client.submit(clean_name, score, result.duration_ms, token)
        except requests.RequestException as e:
            logger.error(f"Error submitting score: {e}")
            return self._submit_locally(clean_name, score)

        if response.ok:
            self.refresh()
            return SubmitOutcome(SubmitStatus.SUBMITTED, "✓ Score submitted!")
        if response.status_code == 429:
            return SubmitOutcome(
                SubmitStatus.RATE_LIMITED, "Too many submissions. Please wait a moment.")
        if response.status_code == 404:
            logger.info("Leaderboard API not available, saving locally")
            return self._submit_locally(clean_name, score)

        logger.error(f"Failed to submit score: HTTP {response.status_code}")
        return SubmitOutcome(SubmitStatus.FAILED, "Error submitting score. Try again.")

    def _submit_locally(self, name: str, score: int) -> SubmitOutcome:
        entries = insert_entry(
            self.store.load_leaderboard(), LeaderboardEntry(name=name, score=score), self.size)
        self.store.save_leaderboard(entries)
        self.cache.replace(entries, stale=True)
        return SubmitOutcome(SubmitStatus.SAVED_LOCALLY, "✓ Score saved! (local)")
