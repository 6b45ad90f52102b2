"""
physics_core.py: The deterministic per-frame kinematics and collision logic.
"""

from typing import Iterable

from .constants import (
    GRAVITY, JUMP_FORCE, CEILING_REBOUND, SCREEN_HEIGHT, OBSTACLE_SPEED
)
from .data_models import Packet, Obstacle


class PhysicsCore:
    """
    Packet physics and AABB collision, shared by the game engine and tests.
    Holds no game state of its own.
    """

    GRAVITY = GRAVITY
    JUMP_FORCE = JUMP_FORCE
    SCREEN_HEIGHT = SCREEN_HEIGHT
    OBSTACLE_SPEED = OBSTACLE_SPEED

    def apply_gravity_and_movement(self, packet: Packet) -> bool:
        """
        Advances the packet by one frame.
        Returns True when the packet hit the floor (a terminal collision).
        """
        packet.velocity += self.GRAVITY
        packet.y += packet.velocity

        # Floor
        if packet.y + packet.size > self.SCREEN_HEIGHT:
            packet.y = self.SCREEN_HEIGHT - packet.size
            packet.velocity = 0.0
            return True

        # Ceiling
        if packet.y < 0:
            packet.y = 0.0
            packet.velocity = CEILING_REBOUND

        return False

    def jump(self, packet: Packet):
        """Overrides the current velocity so every jump has the same height."""
        packet.velocity = self.JUMP_FORCE

    @staticmethod
    def overlaps_horizontally(packet: Packet, obstacle: Obstacle) -> bool:
        return packet.right > obstacle.x and packet.left < obstacle.right

    def check_collision(self, packet: Packet, obstacle: Obstacle) -> bool:
        """Checks the packet against the top and bottom zones of one obstacle."""
        if not self.overlaps_horizontally(packet, obstacle):
            return False

        # Top bracket
        if packet.top < obstacle.top_height:
            return True

        # Bottom bracket
        if packet.bottom > obstacle.gap_bottom:
            return True

        return False

    def check_any_collision(self, packet: Packet, obstacles: Iterable[Obstacle]) -> bool:
        return any(self.check_collision(packet, obs) for obs in obstacles)
