"""
controls.py: Maps pygame events onto the game's abstract actions.
"""

from typing import Optional

import pygame

from .data_models import Action, GameState

JUMP_KEYS = (pygame.K_SPACE,)
POINTER_EVENTS = (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN)


def is_qualifying_input(event: pygame.event.Event) -> bool:
    """Space bar, mouse press, or touch start."""
    if event.type == pygame.KEYDOWN:
        return event.key in JUMP_KEYS
    return event.type in POINTER_EVENTS


def normalize_input(event: pygame.event.Event, state: GameState) -> Optional[Action]:
    """
    Returns the single action an event stands for in the given state,
    or None if the event is not game input.
    """
    if not is_qualifying_input(event):
        return None
    if state == GameState.RUNNING:
        return Action.JUMP
    return Action.START
