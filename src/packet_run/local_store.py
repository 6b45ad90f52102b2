"""
local_store.py: On-disk persistence for the best score and the cached leaderboard.

This is a cache/fallback only. The remote leaderboard stays authoritative.
"""

import json
import logging
import threading
from pathlib import Path
from typing import List

from .data_models import LeaderboardEntry

logger = logging.getLogger(__name__)


class LocalStore:
    """Handles all interaction with the local JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable local data in {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f)

    def load_best(self) -> int:
        with self._lock:
            best = self._read().get("best", 0)
        try:
            return max(int(best), 0)
        except (TypeError, ValueError):
            return 0

    def save_best(self, score: int):
        with self._lock:
            data = self._read()
            data["best"] = int(score)
            self._write(data)

    def load_leaderboard(self) -> List[LeaderboardEntry]:
        with self._lock:
            raw = self._read().get("leaderboard", [])
        entries = []
        for item in raw if isinstance(raw, list) else []:
            try:
                entries.append(LeaderboardEntry.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed cached entry: {item!r}")
        return entries

    def save_leaderboard(self, entries: List[LeaderboardEntry]):
        with self._lock:
            data = self._read()
            data["leaderboard"] = [e.to_dict() for e in entries]
            self._write(data)
