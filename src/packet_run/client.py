#!/usr/bin/env python3
"""
client.py

Packet Run game client: pygame rendering, input, and the post-game
leaderboard flow running on a worker thread.
"""

import logging
import threading
import time
from typing import Optional

import pygame

from . import settings
from .constants import (
    FPS, SCREEN_WIDTH, SCREEN_HEIGHT, FONT_SIZE, MAX_NAME_LENGTH
)
from .controls import normalize_input
from .data_models import GameResult, GameState
from .integrity import InvalidNameError, InvalidScoreError, sanitize_name
from .leaderboard_client import LeaderboardClient, ScoreReporter, SubmitStatus
from .local_store import LocalStore
from .physics_engine import GameEngine

logger = logging.getLogger(__name__)

BACKGROUND = (245, 240, 230)
INK = (0, 0, 0)
MUTED = (102, 102, 102)
SUCCESS = (76, 175, 80)
WARNING = (255, 152, 0)
ERROR = (244, 67, 54)
STATUS_SECONDS = 3.0
STATUS_COLORS = {
    SubmitStatus.SUBMITTED: SUCCESS,
    SubmitStatus.SAVED_LOCALLY: SUCCESS,
    SubmitStatus.RATE_LIMITED: WARNING,
}


class PacketRunClient:
    def __init__(self, store: LocalStore, reporter: ScoreReporter):
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Packet Run")
        self.clock = pygame.time.Clock()

        self.glyph_font = pygame.font.Font(None, FONT_SIZE + 8)
        self.large_font = pygame.font.Font(None, 28)
        self.font = pygame.font.Font(None, 20)

        self.store = store
        self.reporter = reporter

        # --- Game Logic ---
        self.engine = GameEngine(best_score=store.load_best())
        self.engine.add_game_over_listener(self._on_game_over)

        # --- Overlay state (written by the worker thread) ---
        self.ui_lock = threading.Lock()
        self.pending_result: Optional[GameResult] = None
        self.name_prompt_active = False
        self.name_text = ""
        self.close_message: Optional[str] = None
        self.close_message_run_id = 0
        self.status_text = ""
        self.status_color = MUTED
        self.status_until = 0.0

        self._run_in_background(self.reporter.refresh)

    # ----------------- Background work -----------------

    def _run_in_background(self, target, *args):
        def worker():
            try:
                target(*args)
            except Exception:
                logger.exception("Leaderboard task failed")

        threading.Thread(target=worker, daemon=True).start()

    def _on_game_over(self, result: GameResult):
        """Runs inside the frame step; everything slow goes to the worker."""
        if result.best_score > self.store.load_best():
            self.store.save_best(result.best_score)
        self._run_in_background(self._check_score, result)

    def _is_current(self, run_id: int) -> bool:
        """True while the run that produced run_id is the one on screen, finished."""
        return (self.engine.state == GameState.GAME_OVER
                and self.engine.session.run_id == run_id)

    def _check_score(self, result: GameResult):
        qualification = self.reporter.check(result)
        with self.ui_lock:
            if not self._is_current(result.run_id):
                logger.debug(f"Dropping overlay for finished run {result.run_id}")
                return
            if qualification.qualifies:
                self.pending_result = result
                self.name_prompt_active = True
                self.name_text = ""
            else:
                self.close_message = qualification.message
                self.close_message_run_id = result.run_id

    def _submit(self, name: str, result: GameResult):
        self._set_status("Submitting...", MUTED, seconds=30)
        try:
            outcome = self.reporter.submit(name, result)
        except (InvalidScoreError, InvalidNameError) as e:
            logger.error(f"Refusing to submit: {e}")
            self._set_status("Error submitting score. Try again.", ERROR)
            return
        self._set_status(outcome.message, STATUS_COLORS.get(outcome.status, ERROR))

    def _set_status(self, text: str, color, seconds: float = STATUS_SECONDS):
        with self.ui_lock:
            self.status_text = text
            self.status_color = color
            self.status_until = time.monotonic() + seconds

    # ----------------- Input -----------------

    def _handle_overlay_event(self, event) -> bool:
        """Returns True if an overlay consumed the event."""
        with self.ui_lock:
            self._discard_stale_overlays()
            if self.engine.state != GameState.GAME_OVER:
                return False
            if self.name_prompt_active:
                self._handle_name_event(event)
                return True
            if self.close_message is not None:
                if event.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
                    self.close_message = None
                return True
        return False

    def _handle_name_event(self, event):
        # Caller holds ui_lock
        if event.type == pygame.TEXTINPUT:
            self.name_text = (self.name_text + event.text)[:MAX_NAME_LENGTH]
        elif event.type == pygame.KEYDOWN:
            if event.key == pygame.K_BACKSPACE:
                self.name_text = self.name_text[:-1]
            elif event.key == pygame.K_ESCAPE:
                self._close_name_prompt()
            elif event.key == pygame.K_RETURN:
                try:
                    name = sanitize_name(self.name_text)
                except InvalidNameError:
                    # Re-prompt
                    self.name_text = ""
                    return
                result = self.pending_result
                self._close_name_prompt()
                if result is not None:
                    self._run_in_background(self._submit, name, result)

    def _discard_stale_overlays(self):
        # Caller holds ui_lock
        if self.name_prompt_active and (
                self.pending_result is None or not self._is_current(self.pending_result.run_id)):
            self._close_name_prompt()
        if self.close_message is not None and not self._is_current(self.close_message_run_id):
            self.close_message = None

    def _close_name_prompt(self):
        self.name_prompt_active = False
        self.pending_result = None

    # ----------------- Main loop -----------------

    def run(self):
        pygame.key.start_text_input()
        running = True
        while running:
            self.clock.tick(FPS)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    continue
                if self._handle_overlay_event(event):
                    continue
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                    continue
                self.engine.handle_action(normalize_input(event, self.engine.state))

            self.engine.step()
            self._draw()

        pygame.quit()

    # ----------------- Rendering -----------------

    def _draw(self):
        screen = self.screen
        screen.fill(BACKGROUND)
        for i in range(0, SCREEN_WIDTH, 20):
            for j in range(0, SCREEN_HEIGHT, 20):
                screen.set_at((i, j), (220, 215, 205))

        for obs in self.engine.obstacles:
            top_glyph = self.glyph_font.render(obs.pair[0], True, INK)
            bottom_glyph = self.glyph_font.render(obs.pair[1], True, INK)
            center_x = obs.x + obs.width / 2
            screen.blit(top_glyph, (center_x - top_glyph.get_width() / 2,
                                    obs.top_height - top_glyph.get_height()))
            screen.blit(bottom_glyph, (center_x - bottom_glyph.get_width() / 2, obs.gap_bottom))

        packet = self.engine.packet
        rect = pygame.Rect(int(packet.x), int(packet.y), packet.size, packet.size)
        pygame.draw.rect(screen, (255, 255, 255), rect, border_radius=4)
        pygame.draw.rect(screen, INK, rect, width=2, border_radius=4)

        state = self.engine.state
        if state == GameState.IDLE:
            self._center_text("click to start", self.font, INK, SCREEN_HEIGHT // 2 + 40)
        elif state == GameState.GAME_OVER:
            overlay = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT), pygame.SRCALPHA)
            overlay.fill((255, 255, 255, 230))
            screen.blit(overlay, (0, 0))
            self._center_text("packet dropped.", self.large_font, INK, SCREEN_HEIGHT // 2 - 10)
            self._center_text("tap to retry", self.font, MUTED, SCREEN_HEIGHT // 2 + 20)

        hud = self.font.render(
            f"score {self.engine.score} | best {self.engine.best_score}", True, INK)
        screen.blit(hud, (10, 10))

        self._draw_leaderboard()
        self._draw_overlays()
        pygame.display.flip()

    def _draw_leaderboard(self):
        entries, stale = self.reporter.cache.snapshot()
        title = "leaderboard (local)" if stale else "leaderboard"
        x = SCREEN_WIDTH - 170
        self.screen.blit(self.font.render(title, True, INK), (x, 10))
        if not entries:
            self.screen.blit(self.font.render("-", True, MUTED), (x, 30))
        for i, entry in enumerate(entries):
            name = entry.name if len(entry.name) <= 12 else entry.name[:12] + "..."
            color = INK if self._is_highlighted(entry) else MUTED
            text = self.font.render(f"#{i + 1} {name}  {entry.score}", True, color)
            self.screen.blit(text, (x, 30 + i * 18))

    def _is_highlighted(self, entry) -> bool:
        """The entry matching the score of the run that just ended."""
        return self.engine.state == GameState.GAME_OVER and entry.score == self.engine.score

    def _draw_overlays(self):
        with self.ui_lock:
            self._discard_stale_overlays()
            prompt = self.name_prompt_active
            name_text = self.name_text
            message = self.close_message
            status = self.status_text if time.monotonic() < self.status_until else ""
            status_color = self.status_color

        if prompt:
            self._center_text("New high score! Enter your name:", self.font, INK, 60)
            self._center_text(name_text + "_", self.large_font, INK, 90)
            self._center_text("enter = submit | esc = skip", self.font, MUTED, 120)
        elif message:
            self._center_text(message, self.font, INK, 70)
            self._center_text("press any key", self.font, MUTED, 95)

        if status:
            self._center_text(status, self.font, status_color, SCREEN_HEIGHT - 20)

    def _center_text(self, text: str, font, color, y: int):
        surf = font.render(text, True, color)
        self.screen.blit(surf, (SCREEN_WIDTH // 2 - surf.get_width() // 2, y - surf.get_height() // 2))


def main():
    """Entry point for `packet-run`."""
    logging.basicConfig(level=logging.INFO)
    store = LocalStore(settings.data_file)
    reporter = ScoreReporter(
        LeaderboardClient(settings.api_url), store, salt=settings.score_salt)
    PacketRunClient(store, reporter).run()


if __name__ == "__main__":
    main()
