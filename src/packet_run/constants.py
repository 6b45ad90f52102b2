"""
constants.py: Centralized configuration for game and leaderboard settings.
"""

# -------- Frame Config --------
FPS = 60                        # Frames per second (all physics is per-frame)

# -------- Game World Config --------
SCREEN_WIDTH = 600
SCREEN_HEIGHT = 300
PACKET_X = 50                   # Fixed packet X position
PACKET_SIZE = 16

# -------- Physics Config (pixels / frame) --------
GRAVITY = 0.4                   # Added to the velocity every frame
JUMP_FORCE = -6.5               # Velocity set (not added) on jump
CEILING_REBOUND = 0.1           # Small bounce so the packet doesn't stick to the top

# -------- Obstacle Config --------
OBSTACLE_SPEED = 2.5
OBSTACLE_GAP = 140
OBSTACLE_WIDTH = 30
OBSTACLE_MARGIN = 20            # Minimum space between the gap and the screen edges
OBSTACLE_INTERVAL = 220         # Spawn every 220 frames
BRACKET_PAIRS = (("{", "}"), ("[", "]"), ("(", ")"))
FONT_SIZE = 32

# -------- Leaderboard Config --------
LEADERBOARD_SIZE = 5
LEADERBOARD_KEY = "leaderboard"
MAX_NAME_LENGTH = 20
NAME_STRIP_CHARS = "<>\"'&"
DEFAULT_SCORE_SALT = "packet-run-secure-v1"
REQUEST_TIMEOUT = 5.0           # seconds
