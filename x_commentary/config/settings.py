"""
Helpers for loading configuration and credentials from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytz
from dotenv import load_dotenv

DEFAULT_HANDLES = ["AzoniNFT"]

# X rejects max_results outside 5..100 on the user timeline endpoint.
MIN_RESULTS = 5
MAX_RESULTS = 100


@dataclass
class Settings:
    handles: List[str]
    last_seen_path: str = "./lastSeen.json"
    user_ids_path: str = "./userIds.json"
    poll_interval_seconds: int = 60
    post_results_limit: int = 5
    bootstrap_delay_seconds: float = 300.0
    publish_delay_seconds: float = 2.0
    handle_delay_seconds: float = 0.0
    reply_in_thread: bool = False
    dry_run: bool = False
    openai_model: str = "gpt-4"
    scheduler_timezone: str = "UTC"
    credentials: Dict[str, str] = field(default_factory=dict)


def load_environment(dotenv_path: Optional[str] = ".env") -> None:
    """
    Load environment variables from a .env file and the host environment.

    Args:
        dotenv_path: Path to the .env file. Defaults to ".env".

    Returns:
        None. Modifies process environment in-place.
    """
    if dotenv_path and os.path.isfile(dotenv_path):
        load_dotenv(dotenv_path)


def get_api_credentials() -> Dict[str, str]:
    """
    Collect credentials for the X API and OpenAI.

    Returns:
        A dictionary containing tokens and keys sourced from environment variables.
    """
    return {
        "x_bearer_token": os.getenv("X_BEARER_TOKEN", ""),
        "x_api_key": os.getenv("X_API_KEY", ""),
        "x_api_secret": os.getenv("X_API_SECRET", ""),
        "x_access_token": os.getenv("X_ACCESS_TOKEN", ""),
        "x_access_token_secret": os.getenv("X_ACCESS_TOKEN_SECRET", ""),
        "x_oauth2_access_token": os.getenv("X_OAUTH2_ACCESS_TOKEN", ""),
        "openai_api_key": os.getenv("OPENAI_API_KEY", ""),
    }


def parse_handles(raw: str) -> List[str]:
    """
    Split a comma-separated handle list, dropping blanks, '@' prefixes and duplicates.

    Args:
        raw: Value such as "@alice, bob,,alice".

    Returns:
        Handles in their configured order, e.g. ["alice", "bob"].
    """
    handles: List[str] = []
    for part in raw.split(","):
        handle = part.strip().lstrip("@")
        if handle and handle not in handles:
            handles.append(handle)
    return handles


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if not value:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return max(0.0, float(raw))
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from exc


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from exc


def get_settings() -> Settings:
    """
    Build the runtime settings from the process environment.

    Call load_environment() first when a .env file should be honoured.

    Returns:
        A populated Settings instance.

    Raises:
        RuntimeError: If no handles are configured or a numeric value is malformed.
    """
    handles = parse_handles(os.getenv("X_HANDLES", ",".join(DEFAULT_HANDLES)))
    if not handles:
        raise RuntimeError("X_HANDLES must contain at least one account handle.")

    results_limit = _parse_int("POST_RESULTS_LIMIT", 5)
    interval = _parse_int("POLL_INTERVAL_SECONDS", 60)
    if interval <= 0:
        raise RuntimeError("POLL_INTERVAL_SECONDS must be positive.")

    timezone = os.getenv("SCHEDULER_TIMEZONE", "UTC").strip() or "UTC"
    try:
        pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError as exc:
        raise RuntimeError(f"SCHEDULER_TIMEZONE {timezone!r} is not a known time zone.") from exc

    return Settings(
        handles=handles,
        last_seen_path=os.getenv("LAST_SEEN_FILE", "./lastSeen.json"),
        user_ids_path=os.getenv("USER_IDS_FILE", "./userIds.json"),
        poll_interval_seconds=interval,
        post_results_limit=max(MIN_RESULTS, min(results_limit, MAX_RESULTS)),
        bootstrap_delay_seconds=_parse_float("BOOTSTRAP_DELAY_SECONDS", 300.0),
        publish_delay_seconds=_parse_float("PUBLISH_DELAY_SECONDS", 2.0),
        handle_delay_seconds=_parse_float("HANDLE_DELAY_SECONDS", 0.0),
        reply_in_thread=_parse_bool(os.getenv("REPLY_IN_THREAD"), default=False),
        dry_run=_parse_bool(os.getenv("DRY_RUN"), default=False),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4").strip() or "gpt-4",
        scheduler_timezone=timezone,
        credentials=get_api_credentials(),
    )
