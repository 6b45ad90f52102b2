"""
leaderboard.py: Top-N ordering and qualification rules.

Used by the client's local fallback store and by the API, so both views
sort, truncate and break ties the same way.
"""

from typing import List, Optional, Sequence

from .constants import LEADERBOARD_SIZE
from .data_models import LeaderboardEntry


def rank_entries(entries: Sequence[LeaderboardEntry], size: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
    """
    Sorts descending by score and keeps the first `size` entries.
    The sort is stable, so among equal scores the earlier entry stays ahead.
    """
    return sorted(entries, key=lambda e: e.score, reverse=True)[:size]


def insert_entry(entries: Sequence[LeaderboardEntry], entry: LeaderboardEntry,
                 size: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
    return rank_entries([*entries, entry], size)


def cutoff_score(entries: Sequence[LeaderboardEntry], size: int = LEADERBOARD_SIZE) -> Optional[int]:
    """Score of the last place on a full board, or None if there is room."""
    if len(entries) < size:
        return None
    return entries[size - 1].score


def qualifies(score: int, entries: Sequence[LeaderboardEntry], size: int = LEADERBOARD_SIZE) -> bool:
    """A score qualifies if the board has room or it beats last place outright."""
    cutoff = cutoff_score(entries, size)
    if cutoff is None:
        return score >= 0
    return score > cutoff


def target_message(entries: Sequence[LeaderboardEntry], size: int = LEADERBOARD_SIZE) -> str:
    """Message for a score that did not make the board."""
    cutoff = cutoff_score(entries, size)
    target = 0 if cutoff is None else cutoff + 1
    if target > 0:
        return f"So close! Get {target} to make the leaderboard."
    return "Get a score greater than 0 to make the leaderboard."
