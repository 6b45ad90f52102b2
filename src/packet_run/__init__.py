"""
Packet Run: a dodge-the-gap reflex game with a Redis-backed leaderboard API.
"""

__version__ = "1.0.0"
