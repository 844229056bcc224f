# tourney_api/config.py
from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_optional_int(name: str) -> Optional[int]:
    raw = _get_env(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


# -------------------------
# Match settings
# -------------------------
MIN_OVERS = 1
MAX_OVERS = 50
MIN_WICKETS = 1
MAX_WICKETS = 11

DEFAULT_MAX_OVERS: int = _get_env_int("TOURNEY_DEFAULT_MAX_OVERS", 20)  # T20
DEFAULT_MAX_WICKETS: int = _get_env_int("TOURNEY_DEFAULT_MAX_WICKETS", 10)


# -------------------------
# Teams
# -------------------------
MAX_TEAMS: int = _get_env_int("TOURNEY_MAX_TEAMS", 20)

# Product convention, enforced by the HTTP layer (the engine accepts longer names)
MAX_TEAM_NAME_LENGTH: int = _get_env_int("TOURNEY_MAX_TEAM_NAME_LENGTH", 10)


# -------------------------
# Persistence
# -------------------------
STATE_FILE: str = _get_env("TOURNEY_STATE_FILE", ".tourney_state.json")
PERSISTENCE_ENABLED: bool = _get_env("TOURNEY_PERSISTENCE_ENABLED", "1") == "1"


# -------------------------
# Sample results / logging
# -------------------------
# Unset => nondeterministic sample scores
SAMPLE_SEED: Optional[int] = _get_env_optional_int("TOURNEY_SAMPLE_SEED")

LOG_LEVEL: str = _get_env("TOURNEY_LOG_LEVEL", "INFO").upper()


def validate_config() -> None:
    if not (MIN_OVERS <= DEFAULT_MAX_OVERS <= MAX_OVERS):
        raise RuntimeError(f"TOURNEY_DEFAULT_MAX_OVERS must be between {MIN_OVERS} and {MAX_OVERS}")

    if not (MIN_WICKETS <= DEFAULT_MAX_WICKETS <= MAX_WICKETS):
        raise RuntimeError(f"TOURNEY_DEFAULT_MAX_WICKETS must be between {MIN_WICKETS} and {MAX_WICKETS}")

    if MAX_TEAMS < 2:
        raise RuntimeError("TOURNEY_MAX_TEAMS must be at least 2")

    if MAX_TEAM_NAME_LENGTH <= 0:
        raise RuntimeError("TOURNEY_MAX_TEAM_NAME_LENGTH must be positive")

    if PERSISTENCE_ENABLED and not STATE_FILE:
        raise RuntimeError("TOURNEY_STATE_FILE must be set when persistence is enabled")

    if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise RuntimeError(f"Unknown TOURNEY_LOG_LEVEL: {LOG_LEVEL}")
