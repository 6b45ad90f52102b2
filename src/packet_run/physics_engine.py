"""
physics_engine.py: The frame-driven game loop and its state machine.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .data_models import Action, GameResult, GameSession, GameState, Obstacle, Packet
from .obstacle_generator import ObstacleGenerator
from .physics_core import PhysicsCore

logger = logging.getLogger(__name__)

GameOverListener = Callable[[GameResult], None]


@dataclass
class GameEngine(PhysicsCore):
    """
    Owns the packet, the obstacles and the session, and advances them one
    frame per step(). Inherits physics and collision from PhysicsCore.

    State machine: IDLE -> RUNNING -> GAME_OVER -> RUNNING -> ...
    """
    packet: Packet = field(default_factory=Packet)
    session: GameSession = field(default_factory=GameSession)
    obstacles: List[Obstacle] = field(default_factory=list)
    generator: ObstacleGenerator = field(default_factory=ObstacleGenerator)
    clock: Callable[[], float] = time.monotonic
    best_score: int = 0
    listeners: List[GameOverListener] = field(default_factory=list)

    @property
    def state(self) -> GameState:
        return self.session.state

    @property
    def score(self) -> int:
        return self.session.score

    def add_game_over_listener(self, listener: GameOverListener):
        self.listeners.append(listener)

    def handle_action(self, action: Optional[Action]):
        """Applies one normalized input to the state machine."""
        if action is None:
            return
        if self.session.state == GameState.RUNNING:
            if action == Action.JUMP:
                self.jump(self.packet)
        elif action == Action.START:
            self.start()

    def start(self):
        """Resets the run. Used from both IDLE and GAME_OVER."""
        self.packet.reset(self.SCREEN_HEIGHT)
        self.obstacles.clear()
        self.session.reset(start_time=self.clock())
        logger.debug("Run started")

    def step(self):
        """Advances the running game by one frame. No-op outside RUNNING."""
        if self.session.state != GameState.RUNNING:
            return

        # 1. Packet physics (floor contact always ends the run)
        if self.apply_gravity_and_movement(self.packet):
            self._game_over()
            return

        # 2. Spawn
        if self.generator.should_spawn(self.session.frames):
            self.obstacles.append(self.generator.spawn())

        # 3. Move, collide, score and prune obstacles
        survivors = []
        for obs in self.obstacles:
            obs.x -= self.OBSTACLE_SPEED

            if self.check_collision(self.packet, obs):
                self._game_over()
                return

            if not obs.passed and self.packet.x > obs.right:
                obs.passed = True
                self.session.score += 1

            if obs.right >= 0:
                survivors.append(obs)
        self.obstacles[:] = survivors

        self.session.frames += 1

    def duration_ms(self) -> int:
        """Milliseconds since the current run entered RUNNING."""
        if self.session.start_time is None:
            return 0
        return int((self.clock() - self.session.start_time) * 1000)

    def _game_over(self):
        self.session.state = GameState.GAME_OVER
        if self.session.score > self.best_score:
            self.best_score = self.session.score

        result = GameResult(
            score=self.session.score,
            duration_ms=self.duration_ms(),
            best_score=self.best_score,
            run_id=self.session.run_id,
        )
        logger.info(f"Packet dropped. Score: {result.score} ({result.duration_ms} ms)")
        for listener in self.listeners:
            listener(result)
