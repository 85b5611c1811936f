"""
Configuration - Environment settings and engine tunables.

Environment:
    TRUTHHUNT_ENV         development | production
    TRUTHHUNT_DATA_DIR    Root directory for the JSON file store
    TRUTHHUNT_LOG_LEVEL   Logging level name (INFO, DEBUG, ...)
    ALLOWED_ORIGINS       Comma-separated CORS origins for the API

Tunables are plain constants. Every component takes them as
constructor arguments, so tests can inject their own values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Environment configuration
TRUTHHUNT_ENV = os.getenv("TRUTHHUNT_ENV", "development")
TRUTHHUNT_DATA_DIR = Path(
    os.getenv("TRUTHHUNT_DATA_DIR", str(Path.home() / ".truthhunt"))
)
TRUTHHUNT_LOG_LEVEL = os.getenv("TRUTHHUNT_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

# Storage keys
SNAPSHOT_KEY = "truthHunters_savedGame"
QUEUE_KEY = "truthHunters_offlineQueue"
PROFILE_KEY = "truthHunters_playerProfile"
LEADERBOARD_KEY = "truthHunters_leaderboard"

# Snapshot store
SNAPSHOT_VERSION = 1
SNAPSHOT_MAX_AGE_MS = 24 * 60 * 60 * 1000

# Sync queue
QUEUE_MAX_RETRIES = 3

# Scoring
HINT_COST = 2
CALIBRATION_TOLERANCE = 2
CALIBRATION_BONUS = 3

# Live progress cleanup
LIVE_CLEANUP_ATTEMPTS = 3
LIVE_CLEANUP_DELAY_S = 0.2

# Streak feedback cue
STREAK_CUE_THRESHOLD = 3
STREAK_CUE_DELAY_S = 0.3

# Upper bound on waiting for pending snapshot writes before a resume
RESUME_DRAIN_TIMEOUT_S = 2.0

# Profile
PROFILE_VERSION = 1
PROFILE_RECENT_GAMES = 10

# Local leaderboard
LEADERBOARD_MAX_ENTRIES = 100
LEADERBOARD_DEFAULT_LIMIT = 10

DEFAULT_ROUNDS = 5

_logging_configured = False


def configure_logging(level: str | None = None):
    """Configure root logging once for CLI and server entry points."""
    global _logging_configured
    if _logging_configured:
        return
    logging.basicConfig(
        level=getattr(logging, (level or TRUTHHUNT_LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _logging_configured = True
