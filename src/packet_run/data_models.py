"""
data_models.py: Data structures for the game state and leaderboard.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from .constants import (
    PACKET_X, PACKET_SIZE, SCREEN_HEIGHT, OBSTACLE_WIDTH, OBSTACLE_GAP
)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC time in the same shape as JavaScript's Date.toISOString()."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GameState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    GAME_OVER = "GAME_OVER"


class Action(str, Enum):
    """Abstract player input, independent of the device that produced it."""
    START = "start"
    JUMP = "jump"


@dataclass
class Packet:
    """The player-controlled entity. Only y and velocity change."""
    x: float = PACKET_X
    y: float = SCREEN_HEIGHT / 2
    velocity: float = 0.0
    size: int = PACKET_SIZE

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.size

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.size

    def reset(self, screen_height: int = SCREEN_HEIGHT):
        self.y = screen_height / 2
        self.velocity = 0.0


@dataclass
class Obstacle:
    """A paired top/bottom barrier with a passable gap."""
    x: float
    top_height: float
    width: int = OBSTACLE_WIDTH
    gap_height: int = OBSTACLE_GAP
    pair: Tuple[str, str] = ("[", "]")
    passed: bool = False

    @property
    def gap_bottom(self) -> float:
        return self.top_height + self.gap_height

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass
class GameSession:
    """Per-run state, reset on every transition into RUNNING."""
    state: GameState = GameState.IDLE
    score: int = 0
    frames: int = 0
    start_time: Optional[float] = None   # seconds, from the engine clock
    run_id: int = 0                      # increments on every start

    def reset(self, start_time: float):
        self.state = GameState.RUNNING
        self.run_id += 1
        self.score = 0
        self.frames = 0
        self.start_time = start_time


@dataclass(frozen=True)
class GameResult:
    """Snapshot of a finished run, handed to the submission flow."""
    score: int
    duration_ms: int
    best_score: int
    run_id: int = 0


@dataclass
class LeaderboardEntry:
    name: str
    score: int
    date: str = field(default_factory=iso_timestamp)

    def to_dict(self) -> dict:
        """Wire/cache shape shared by the API and the local store."""
        return {"name": self.name, "score": self.score, "date": self.date}

    @classmethod
    def from_dict(cls, data: dict) -> "LeaderboardEntry":
        return cls(
            name=str(data["name"]),
            score=int(data["score"]),
            date=str(data.get("date", "")),
        )
