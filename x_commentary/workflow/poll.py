"""
One poll cycle: for each tracked handle fetch posts newer than its watermark,
drop replies, generate commentary for what is left and publish it.

Workflow per handle:
1) Skip handles without a cached account ID (bootstrap has not run for them).
2) Fetch up to N posts with since_id=<watermark>.
3) Exclude replies; advance the watermark to the newest remaining post.
4) Oldest first: generate commentary, build the post text, publish, pause.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from x_commentary.reply_engine.template_builder import build_reply, validate_reply
from x_commentary.utils.id_tracker import IdTracker, is_newer_id
from x_commentary.utils.logger import get_logger
from x_commentary.utils.rate_limit import RateLimitPolicy
from x_commentary.x_api.x_client import XClient

logger = get_logger(__name__)

API_ERRORS = (requests.RequestException, RuntimeError, ValueError, KeyError)

CommentaryFn = Callable[[str], Optional[str]]


@dataclass
class PollResult:
    fetched: int = 0
    replies_skipped: int = 0
    published: int = 0
    generation_failed: int = 0
    publish_failed: int = 0
    handles_failed: int = 0
    handles_skipped: int = 0


def is_reply(post: Dict[str, Any]) -> bool:
    """
    Determine if a post is a reply rather than an original post.

    X API v2 only includes `in_reply_to_user_id` and `referenced_tweets` when
    they are requested via tweet.fields and non-empty, so absence means
    "not a reply".
    """
    if post.get("in_reply_to_user_id"):
        return True
    for ref in post.get("referenced_tweets") or []:
        if ref.get("type") == "replied_to":
            return True
    return False


def fetch_new_posts(
    client: XClient,
    user_id: str,
    since_id: Optional[str],
    max_results: int = 5,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Fetch posts newer than `since_id` and split out the ones worth answering.

    Args:
        client: X API client.
        user_id: Account ID to read.
        since_id: Current watermark; None/"" fetches the latest page.
        max_results: Page size.

    Returns:
        (all fetched posts newest-first, non-reply posts oldest-first)
    """
    posts = client.get_user_posts(user_id, max_results=max_results, since_id=since_id or None)
    originals = [post for post in posts if not is_reply(post)]
    originals.reverse()
    return posts, originals


def newest_post_id(posts: Sequence[Dict[str, Any]]) -> Optional[str]:
    newest: Optional[str] = None
    for post in posts:
        post_id = str(post["id"])
        if is_newer_id(post_id, newest):
            newest = post_id
    return newest


def publish_commentary(
    client: XClient,
    handle: str,
    post: Dict[str, Any],
    commentary: str,
    reply_in_thread: bool = False,
    dry_run: bool = False,
) -> Optional[Dict[str, Any]]:
    """
    Publish commentary for one post.

    Returns:
        The X API response, or None in dry-run mode.

    Raises:
        ValueError: If the assembled text is not a publishable post.
    """
    post_id = str(post["id"])
    text = build_reply(commentary, handle, post_id)
    if not validate_reply(text):
        raise ValueError(f"assembled post is empty or too long: {text!r}")
    if dry_run:
        logger.info(f"[dry run] Would post for @{handle} ({post_id}): {text!r}")
        return None
    response = client.create_post(text, in_reply_to_post_id=post_id if reply_in_thread else None)
    new_id = (response.get("data") or {}).get("id")
    logger.info(f"Commentary posted for @{handle} ({post_id}) as {new_id}")
    return response


def process_handle(
    handle: str,
    user_id: str,
    client: XClient,
    tracker: IdTracker,
    generator: CommentaryFn,
    pacing: RateLimitPolicy,
    result: PollResult,
    max_results: int = 5,
    reply_in_thread: bool = False,
    dry_run: bool = False,
) -> None:
    """
    Run the fetch -> filter -> generate -> publish steps for one handle.

    Fetch errors propagate to the caller; per-post errors are logged and the
    next post is processed.
    """
    fetched, originals = fetch_new_posts(
        client, user_id, tracker.get_last_seen_id(handle), max_results=max_results
    )
    result.fetched += len(fetched)
    result.replies_skipped += len(fetched) - len(originals)
    if not originals:
        return

    logger.info(f"Found {len(originals)} new post(s) for @{handle}")
    newest = newest_post_id(originals)
    if newest:
        tracker.update_last_seen_id(handle, newest)

    for post in originals:
        text = post.get("text") or ""
        logger.info(f"[@{handle}] {text}")
        try:
            commentary = generator(text)
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Commentary generation failed for @{handle} ({post.get('id')}): {exc}")
            commentary = None
        if not commentary:
            logger.warning(f"No commentary for @{handle} ({post.get('id')}); not posting")
            result.generation_failed += 1
            continue

        try:
            publish_commentary(
                client, handle, post, commentary, reply_in_thread=reply_in_thread, dry_run=dry_run
            )
        except API_ERRORS as exc:
            logger.error(f"Error posting commentary for @{handle} ({post.get('id')}): {exc}")
            result.publish_failed += 1
            continue

        result.published += 1
        pacing.after_publish()


def poll_once(
    handles: Sequence[str],
    client: XClient,
    tracker: IdTracker,
    generator: CommentaryFn,
    pacing: RateLimitPolicy,
    max_results: int = 5,
    reply_in_thread: bool = False,
    dry_run: bool = False,
) -> PollResult:
    """
    Execute one full poll cycle across all handles and persist the watermarks.

    Args:
        handles: Tracked handles, processed sequentially.
        client: X API client.
        tracker: Cache store holding account IDs and watermarks.
        generator: Maps post text to commentary; None means "do not post".
        pacing: Pauses after publishes and between handles.
        max_results: Page size per timeline fetch.
        reply_in_thread: Attach commentary as a threaded reply instead of a standalone post.
        dry_run: Log the would-be posts without calling the publish endpoint or saving watermarks.

    Returns:
        Counters describing what happened this cycle.
    """
    result = PollResult()
    for index, handle in enumerate(handles):
        if index:
            pacing.after_handle()
        user_id = tracker.get_user_id(handle)
        if not user_id:
            logger.warning(f"Skipping @{handle}: no account ID found. Run with --init first.")
            result.handles_skipped += 1
            continue

        try:
            process_handle(
                handle,
                user_id,
                client,
                tracker,
                generator,
                pacing,
                result,
                max_results=max_results,
                reply_in_thread=reply_in_thread,
                dry_run=dry_run,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Error processing posts for @{handle}: {exc}")
            result.handles_failed += 1

    if dry_run:
        logger.info("[dry run] Watermarks not saved")
    else:
        tracker.save_last_seen()
    return result
