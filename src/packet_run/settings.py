import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import DEFAULT_SCORE_SALT

load_dotenv()

redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
score_salt = os.getenv("SCORE_SALT", DEFAULT_SCORE_SALT)
api_url = os.getenv("LEADERBOARD_API_URL", "http://localhost:3001/api/leaderboard")

# Submissions allowed per client address within the window
rate_limit_max = int(os.getenv("RATE_LIMIT_MAX", "5"))
rate_limit_window_sec = int(os.getenv("RATE_LIMIT_WINDOW_SEC", "60"))

# A run cannot score faster than this; rejects hand-crafted durations
min_ms_per_point = int(os.getenv("MIN_MS_PER_POINT", "1000"))

# Proxy addresses whose X-Forwarded-For header is honored (comma separated)
trusted_proxies = frozenset(
    addr.strip() for addr in os.getenv("TRUSTED_PROXIES", "").split(",") if addr.strip()
)

data_file = Path(
    os.getenv("PACKET_RUN_DATA_FILE", str(Path.home() / ".packet_run.json"))
)

server_host = os.getenv("HOST", "0.0.0.0")
server_port = int(os.getenv("PORT", "3001"))

if __name__ == "__main__":
    print(redis_url, api_url, rate_limit_max, rate_limit_window_sec, data_file)
