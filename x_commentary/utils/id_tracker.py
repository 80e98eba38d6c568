"""
Helpers for tracking last-seen post IDs and account IDs per handle so restarts
never reply to the same post twice.

Both mappings are flat JSON objects of handle -> string ID, rewritten wholesale
on every save.
"""

from __future__ import annotations

import json
import os
from typing import Dict, Optional

from x_commentary.utils.logger import get_logger

logger = get_logger(__name__)


def is_newer_id(candidate: str, current: Optional[str]) -> bool:
    """
    Decide whether `candidate` identifies a more recent post than `current`.

    X post IDs are snowflakes, so numeric order is chronological order.
    Non-numeric IDs fall back to comparing length, then lexical order.

    Args:
        candidate: Post ID that might replace the watermark.
        current: Existing watermark, or None/"" when the handle has none.

    Returns:
        True if candidate should become the new watermark.
    """
    if not current:
        return True
    if candidate.isdigit() and current.isdigit():
        return int(candidate) > int(current)
    return (len(candidate), candidate) > (len(current), current)


def load_mapping(path: str) -> Dict[str, str]:
    """
    Read a handle -> ID mapping from disk.

    Args:
        path: JSON file location.

    Returns:
        The mapping with values coerced to strings; empty if the file is
        missing, unreadable, or not a JSON object.
    """
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.error(f"Error loading local cache {path}: {exc}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"Ignoring {path}: expected a JSON object, got {type(data).__name__}")
        return {}
    return {str(k): str(v) for k, v in data.items() if v is not None}


def save_mapping(path: str, mapping: Dict[str, str]) -> bool:
    """
    Atomically write a handle -> ID mapping as indented, key-sorted JSON.

    Args:
        path: Destination file.
        mapping: Data to persist.

    Returns:
        True on success, False if the write failed (the failure is logged).
    """
    tmp = f"{path}.tmp"
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(tmp, "w", encoding="utf-8", newline="\n") as f:
            f.write(json.dumps(mapping, indent=2, sort_keys=True))
            f.write("\n")
        os.replace(tmp, path)
        return True
    except OSError as exc:
        logger.error(f"Failed to save {path}: {exc}")
        return False


class IdTracker:
    """
    Owns the per-handle watermark and account ID mappings for one process.

    Example:
        tracker = IdTracker("./lastSeen.json", "./userIds.json")
        tracker.load()
        tracker.update_last_seen_id("alice", "1790000000000000000")
        tracker.save_last_seen()
    """

    def __init__(self, last_seen_path: str, user_ids_path: str):
        self.last_seen_path = last_seen_path
        self.user_ids_path = user_ids_path
        self.last_seen: Dict[str, str] = {}
        self.user_ids: Dict[str, str] = {}

    def load(self) -> None:
        """Replace in-memory state with whatever is on disk (empty on failure)."""
        self.last_seen = load_mapping(self.last_seen_path)
        if self.last_seen:
            logger.info(f"Loaded last seen post IDs for {len(self.last_seen)} handle(s)")
        self.user_ids = load_mapping(self.user_ids_path)
        if self.user_ids:
            logger.info(f"Loaded cached account IDs for {len(self.user_ids)} handle(s)")

    def save(self) -> bool:
        """Persist both mappings. Returns False if either write failed."""
        saved_last_seen = save_mapping(self.last_seen_path, self.last_seen)
        saved_user_ids = save_mapping(self.user_ids_path, self.user_ids)
        if saved_last_seen and saved_user_ids:
            logger.info(f"Saved {self.user_ids_path} and {self.last_seen_path}")
        return saved_last_seen and saved_user_ids

    def save_last_seen(self) -> bool:
        """Persist only the watermark mapping."""
        saved = save_mapping(self.last_seen_path, self.last_seen)
        if saved:
            logger.info(f"Updated {self.last_seen_path}")
        return saved

    def replace(self, last_seen: Dict[str, str], user_ids: Dict[str, str]) -> None:
        self.last_seen = dict(last_seen)
        self.user_ids = dict(user_ids)

    def get_user_id(self, handle: str) -> str:
        return self.user_ids.get(handle, "")

    def get_last_seen_id(self, handle: str) -> str:
        """
        Retrieve the last processed post ID for a given handle.

        Args:
            handle: X profile handle identifier.

        Returns:
            The last seen post ID string, or an empty string if none is stored.
        """
        return self.last_seen.get(handle, "")

    def update_last_seen_id(self, handle: str, post_id: str) -> bool:
        """
        Advance the watermark for a handle; older or equal IDs are ignored.

        Args:
            handle: X profile handle identifier.
            post_id: The newest processed post ID.

        Returns:
            True if the watermark moved.
        """
        post_id = str(post_id)
        if not is_newer_id(post_id, self.last_seen.get(handle)):
            return False
        self.last_seen[handle] = post_id
        return True
