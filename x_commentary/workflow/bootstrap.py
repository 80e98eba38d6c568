"""
One-time initialization: resolve every tracked handle to its account ID and seed
its watermark with the latest existing post, so the first poll only sees posts
published after bootstrap.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import requests

from x_commentary.utils.id_tracker import IdTracker
from x_commentary.utils.logger import get_logger
from x_commentary.utils.rate_limit import RateLimitPolicy
from x_commentary.x_api.x_client import XClient

logger = get_logger(__name__)

BOOTSTRAP_PAGE_SIZE = 5

API_ERRORS = (requests.RequestException, RuntimeError, ValueError, KeyError)


@dataclass
class BootstrapResult:
    resolved: List[str] = field(default_factory=list)
    without_posts: List[str] = field(default_factory=list)
    timeline_failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def run_bootstrap(
    handles: Sequence[str],
    client: XClient,
    tracker: IdTracker,
    pacing: RateLimitPolicy,
) -> BootstrapResult:
    """
    Build fresh handle -> account ID and handle -> watermark mappings and persist them.

    A handle whose lookup fails is logged and left out of both mappings. A handle
    whose timeline read fails keeps its account ID but gets no watermark. The
    rest carry on and the files are written once at the end regardless.

    Args:
        handles: Handles to initialize, processed in order.
        client: X API client used for lookup and timeline reads.
        tracker: Cache store whose mappings are replaced and saved.
        pacing: Supplies the pause between lookup and timeline fetch.

    Returns:
        Which handles were resolved, had no watermark, or were skipped.
    """
    result = BootstrapResult()
    new_last_seen: Dict[str, str] = {}
    new_user_ids: Dict[str, str] = {}

    logger.info("Initializing account IDs and last seen post IDs...")
    for handle in handles:
        try:
            user_id = client.get_user_id(handle)
        except API_ERRORS as exc:
            logger.error(f"Failed to get account ID for @{handle}: {exc}")
            logger.error(f"Skipped @{handle} due to an error.")
            result.skipped.append(handle)
            continue

        new_user_ids[handle] = user_id
        result.resolved.append(handle)
        pacing.after_lookup()

        try:
            latest_post_id = client.get_latest_post_id(user_id, max_results=BOOTSTRAP_PAGE_SIZE)
        except API_ERRORS as exc:
            logger.error(f"Failed to get latest post for account {user_id} (@{handle}): {exc}")
            logger.warning(f"No watermark for @{handle}; the first poll will read its latest posts.")
            result.timeline_failed.append(handle)
            continue

        if latest_post_id:
            new_last_seen[handle] = latest_post_id
            logger.info(f"Bootstrapped @{handle} with post ID {latest_post_id}")
        else:
            logger.warning(f"No posts found for @{handle}")
            result.without_posts.append(handle)

    tracker.replace(last_seen=new_last_seen, user_ids=new_user_ids)
    tracker.save()

    logger.info(
        f"Initialization complete: {len(result.resolved)} resolved, "
        f"{len(result.without_posts)} without posts, {len(result.timeline_failed)} without a timeline, "
        f"{len(result.skipped)} skipped"
    )
    return result
