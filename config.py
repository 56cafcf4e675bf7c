"""Configuration for the arcade lobby bot."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")

# StarCraft II arcade API (lobbies, profiles, maps)
ARCADE_API_URL = os.getenv("ARCADE_API_URL", "https://api.sc2arcade.com")

# Profanity classifier used to redact player names
CLASSIFIER_URL = os.getenv("CLASSIFIER_URL", "https://uapis.cn/api/v1/text/profanitycheck")

# Optional proxy for all outbound requests, e.g. http://127.0.0.1:7890
PROXY_URL = os.getenv("PROXY_URL", "") or None

# Database
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(__file__).parent / 'arcade.db'}",
)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Verify handles against the arcade API before binding them
CHECK_HANDLE = _parse_bool(os.getenv("CHECK_HANDLE"), True)
# Redact player names through the classifier
SENSITIVE_FILTER_ENABLED = _parse_bool(os.getenv("SENSITIVE_FILTER_ENABLED"), True)
# Room, history, match and leaderboard commands (handle commands are always on)
FEATURES_ENABLED = _parse_bool(os.getenv("FEATURES_ENABLED"), True)


def _parse_ttl_days(value: str) -> float | None:
    if not value or not value.strip():
        return None
    try:
        days = float(value)
    except ValueError:
        return None
    return days if days > 0 else None


# Classifier verdicts are cached forever unless a TTL (days) is given
CLASSIFIER_TTL_DAYS = _parse_ttl_days(os.getenv("CLASSIFIER_TTL_DAYS", ""))
# fail_open: fall back to the last known verdict (or not sensitive); fail_closed: treat as sensitive
CLASSIFIER_FAILURE_POLICY = os.getenv("CLASSIFIER_FAILURE_POLICY", "fail_closed").strip().lower()

PATCH_NOTES_LOCALE = os.getenv("PATCH_NOTES_LOCALE", "zhCN")


# Role IDs or names (comma-separated). Names are case-insensitive.
def _parse_role_ids(value: str) -> set[int]:
    if not value:
        return set()
    result = set()
    for x in value.split(","):
        try:
            result.add(int(x.strip()))
        except ValueError:
            continue
    return result


def _parse_role_names(value: str) -> set[str]:
    if not value:
        return set()
    return {x.strip().lower() for x in value.split(",") if x.strip()}


ADMIN_ROLE_IDS = _parse_role_ids(os.getenv("ADMIN_ROLE_IDS", ""))
ADMIN_ROLE_NAMES = _parse_role_names(os.getenv("ADMIN_ROLE_NAMES", ""))

# User IDs that bypass role checks (when Members Intent fails to return roles)
ADMIN_USER_IDS = _parse_role_ids(os.getenv("ADMIN_USER_IDS", ""))
