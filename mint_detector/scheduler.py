from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from mint_detector.config import AppSettings
from mint_detector.models import PollOutcome


@dataclass
class AdaptiveScheduler:
    """Poll interval that backs off while idle or failing.

    Idle and errored cycles add ``step_ms`` up to ``max_interval_ms``; any
    cycle that fetched signatures snaps back to ``base_interval_ms``.
    """

    base_interval_ms: int
    max_interval_ms: int = 5000
    step_ms: int = 100
    current_interval_ms: int = field(init=False)

    def __post_init__(self) -> None:
        if self.max_interval_ms < self.base_interval_ms:
            self.max_interval_ms = self.base_interval_ms
        self.current_interval_ms = self.base_interval_ms

    @classmethod
    def create(cls, settings: AppSettings) -> AdaptiveScheduler:
        return cls(
            base_interval_ms=settings.poll_interval_ms,
            max_interval_ms=settings.max_poll_interval_ms,
            step_ms=settings.poll_backoff_step_ms,
        )

    def record(self, outcome: PollOutcome) -> int:
        if outcome is PollOutcome.ACTIVE:
            self.current_interval_ms = self.base_interval_ms
        else:
            self.current_interval_ms = min(
                self.current_interval_ms + self.step_ms, self.max_interval_ms
            )
            logger.debug(
                "Poll {}; interval now {}ms", outcome.value, self.current_interval_ms
            )
        return self.current_interval_ms

    @property
    def interval_seconds(self) -> float:
        return self.current_interval_ms / 1000.0
