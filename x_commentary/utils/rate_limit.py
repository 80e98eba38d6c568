"""
Simple rate-limiting helpers to prevent API overuse.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class RateLimitPolicy:
    """
    Fixed pauses between rate-limited X API operations.

    Attributes:
        bootstrap_delay: Seconds to wait between resolving a handle and fetching its timeline.
        publish_delay: Seconds to wait after each successful publish.
        handle_delay: Seconds to wait after finishing one handle in a poll cycle.
        sleep: Function used to pause; tests swap in a recorder.
    """

    bootstrap_delay: float = 300.0
    publish_delay: float = 2.0
    handle_delay: float = 0.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def pause(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)

    def after_lookup(self) -> None:
        self.pause(self.bootstrap_delay)

    def after_publish(self) -> None:
        self.pause(self.publish_delay)

    def after_handle(self) -> None:
        self.pause(self.handle_delay)
