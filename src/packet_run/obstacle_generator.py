"""
obstacle_generator.py: Spawns bracket obstacles on a fixed frame cadence.
"""

import random
from dataclasses import dataclass, field

from .constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, OBSTACLE_GAP, OBSTACLE_WIDTH,
    OBSTACLE_MARGIN, OBSTACLE_INTERVAL, BRACKET_PAIRS
)
from .data_models import Obstacle


@dataclass
class ObstacleGenerator:
    """
    Creates obstacles at the right edge of the playfield.
    The gap is placed so that it always fits on screen with a margin
    above and below.
    """
    rng: random.Random = field(default_factory=random.Random)
    interval: int = OBSTACLE_INTERVAL
    screen_width: int = SCREEN_WIDTH
    screen_height: int = SCREEN_HEIGHT
    gap_height: int = OBSTACLE_GAP
    margin: int = OBSTACLE_MARGIN
    spawned: int = 0

    def should_spawn(self, frame: int) -> bool:
        return frame % self.interval == 0

    def spawn(self) -> Obstacle:
        top_height = self.rng.uniform(
            self.margin, self.screen_height - self.gap_height - self.margin)
        pair = self.rng.choice(BRACKET_PAIRS)
        self.spawned += 1
        return Obstacle(
            x=float(self.screen_width),
            top_height=top_height,
            width=OBSTACLE_WIDTH,
            gap_height=self.gap_height,
            pair=pair,
        )
