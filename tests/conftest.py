"""Shared fixtures and fakes for x-commentary tests."""
from typing import Any, Dict, List, Optional

import pytest

from x_commentary.utils.id_tracker import IdTracker
from x_commentary.utils.rate_limit import RateLimitPolicy

ENV_VARS = [
    "X_BEARER_TOKEN",
    "X_API_KEY",
    "X_API_SECRET",
    "X_ACCESS_TOKEN",
    "X_ACCESS_TOKEN_SECRET",
    "X_OAUTH2_ACCESS_TOKEN",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "X_HANDLES",
    "LAST_SEEN_FILE",
    "USER_IDS_FILE",
    "POLL_INTERVAL_SECONDS",
    "POST_RESULTS_LIMIT",
    "BOOTSTRAP_DELAY_SECONDS",
    "PUBLISH_DELAY_SECONDS",
    "HANDLE_DELAY_SECONDS",
    "REPLY_IN_THREAD",
    "DRY_RUN",
    "SCHEDULER_TIMEZONE",
    "LOG_LEVEL",
]


def make_post(post_id: str, text: str = "", reply_to: Optional[str] = None) -> Dict[str, Any]:
    post: Dict[str, Any] = {"id": post_id, "text": text or f"post {post_id}"}
    if reply_to:
        post["in_reply_to_user_id"] = reply_to
        post["referenced_tweets"] = [{"type": "replied_to", "id": "1"}]
    return post


class FakeXClient:
    """In-memory stand-in for XClient. Timelines are stored newest-first."""

    def __init__(
        self,
        users: Optional[Dict[str, str]] = None,
        timelines: Optional[Dict[str, Any]] = None,
        honour_since_id: bool = True,
        publish_error: Optional[Exception] = None,
    ):
        self.users = users or {}
        self.timelines = timelines or {}
        self.honour_since_id = honour_since_id
        self.publish_error = publish_error
        self.lookups: List[str] = []
        self.timeline_calls: List[tuple] = []
        self.posted: List[tuple] = []

    def get_user_id(self, username: str) -> str:
        self.lookups.append(username)
        if username not in self.users:
            raise RuntimeError(f"No user returned for @{username}")
        return self.users[username]

    def get_user_posts(self, user_id: str, max_results: int = 5, since_id: Optional[str] = None):
        self.timeline_calls.append((user_id, max_results, since_id))
        timeline = self.timelines.get(user_id, [])
        if isinstance(timeline, Exception):
            raise timeline
        posts = list(timeline)
        if since_id and self.honour_since_id:
            posts = [p for p in posts if int(p["id"]) > int(since_id)]
        return posts[:max_results]

    def get_latest_post_id(self, user_id: str, max_results: int = 5) -> Optional[str]:
        posts = self.get_user_posts(user_id, max_results=max_results)
        return posts[0]["id"] if posts else None

    def create_post(self, text: str, in_reply_to_post_id: Optional[str] = None) -> Dict[str, Any]:
        if self.publish_error is not None:
            raise self.publish_error
        self.posted.append((text, in_reply_to_post_id))
        return {"data": {"id": str(9000 + len(self.posted)), "text": text}}


class RecordingGenerator:
    """Commentary generator that records its inputs and returns canned text."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None, default: Optional[str] = "Looks bullish."):
        self.responses = responses or {}
        self.default = default
        self.calls: List[str] = []

    def __call__(self, text: str) -> Optional[str]:
        self.calls.append(text)
        value = self.responses.get(text, self.default)
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the bot reads so tests start from defaults."""
    for name in ENV_VARS:
        # setenv first so teardown also removes values load_dotenv() writes later.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def tracker(tmp_path):
    return IdTracker(str(tmp_path / "lastSeen.json"), str(tmp_path / "userIds.json"))


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def pacing(sleeps):
    return RateLimitPolicy(bootstrap_delay=300, publish_delay=2, handle_delay=0, sleep=sleeps.append)
