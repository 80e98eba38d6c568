"""
Entry point for the X commentary bot.

Usage:
    python main.py --init       # resolve handles and seed watermarks, then exit
    python main.py              # poll now, then every POLL_INTERVAL_SECONDS
    python main.py --once       # run a single poll cycle and exit

Environment: see x_commentary/config/settings.py.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from scheduler import PollScheduler
from x_commentary.config.settings import Settings, get_settings, load_environment
from x_commentary.reply_engine.reply_generator import CommentaryGenerator
from x_commentary.utils.id_tracker import IdTracker
from x_commentary.utils.logger import configure_logging, get_logger
from x_commentary.utils.rate_limit import RateLimitPolicy
from x_commentary.workflow.bootstrap import run_bootstrap
from x_commentary.workflow.poll import PollResult, poll_once
from x_commentary.x_api.x_client import XClient

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Post LLM commentary on new posts from tracked X accounts.")
    parser.add_argument(
        "--init",
        action="store_true",
        help="Resolve account IDs and seed last-seen post IDs, then exit.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single poll cycle and exit instead of polling on a schedule.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to a .env file to load (default: .env).",
    )
    return parser.parse_args(argv)


def build_pacing(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy(
        bootstrap_delay=settings.bootstrap_delay_seconds,
        publish_delay=settings.publish_delay_seconds,
        handle_delay=settings.handle_delay_seconds,
    )


def build_tracker(settings: Settings) -> IdTracker:
    tracker = IdTracker(settings.last_seen_path, settings.user_ids_path)
    tracker.load()
    return tracker


def run_init(settings: Settings) -> int:
    client = XClient.from_credentials(settings.credentials, require_post_auth=False)
    tracker = IdTracker(settings.last_seen_path, settings.user_ids_path)
    run_bootstrap(settings.handles, client, tracker, build_pacing(settings))
    return 0


def make_poll_cycle(settings: Settings):
    """
    Wire the collaborators for polling and return a zero-argument cycle runner.

    Raises:
        RuntimeError: If X or OpenAI credentials are missing.
    """
    api_key = settings.credentials.get("openai_api_key") or ""
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is required for commentary generation.")

    client = XClient.from_credentials(settings.credentials, require_post_auth=not settings.dry_run)
    tracker = build_tracker(settings)
    generator = CommentaryGenerator(api_key, model=settings.openai_model)
    pacing = build_pacing(settings)

    def run_cycle() -> PollResult:
        return poll_once(
            settings.handles,
            client,
            tracker,
            generator,
            pacing,
            max_results=settings.post_results_limit,
            reply_in_thread=settings.reply_in_thread,
            dry_run=settings.dry_run,
        )

    return run_cycle


def main(argv: Optional[List[str]] = None) -> int:
    """
    Load configuration and run bootstrap, a single poll, or the polling loop.

    Returns:
        Process exit code: 0 on success, 1 on configuration errors.
    """
    args = parse_args(argv)
    load_environment(args.env_file)
    configure_logging()

    try:
        settings = get_settings()
        if args.init:
            return run_init(settings)
        run_cycle = make_poll_cycle(settings)
    except RuntimeError as exc:
        logger.error(f"Configuration error: {exc}")
        return 1

    if args.once:
        result = run_cycle()
        logger.info(f"Poll cycle finished: {result}")
        return 0

    scheduler = PollScheduler(
        run_cycle,
        interval_seconds=settings.poll_interval_seconds,
        timezone=settings.scheduler_timezone,
    )
    scheduler.run_forever()
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
