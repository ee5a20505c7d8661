"""Application-wide configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Redis
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")

# Namespace for score documents: artifacts:{APP_ID}:users:{uid}:scores:...
APP_ID: str = os.getenv("KISHO_APP_ID", "kisho-type")

# ── Scoring Configuration ────────────────────────────────────────────────

# Swipes required before results are shown
MIN_RESPONSE_THRESHOLD: int = int(os.getenv("MIN_RESPONSE_THRESHOLD", "200"))

# Big-Five sums are mapped from [-B*n, +B*n] onto 0-100 (n = response count)
BIG_FIVE_BOUND_PER_RESPONSE: float = float(
    os.getenv("BIG_FIVE_BOUND_PER_RESPONSE", "0.2")
)

# Poem card catalog
CARD_CATALOG_PATH: Path = Path(
    os.getenv(
        "CARD_CATALOG_PATH",
        str(Path(__file__).resolve().parent / "poem_cards.yaml"),
    )
)

# ── Identity ─────────────────────────────────────────────────────────────

# 0 = anonymous tokens never expire
AUTH_TOKEN_TTL_SECONDS: int = int(os.getenv("AUTH_TOKEN_TTL_SECONDS", "0"))

# ── Server Configuration ─────────────────────────────────────────────────

SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
