"""Retry state machine for provisioning attempts.

Pure and queue-agnostic: given the failed task, the error and the current
time it decides whether to retry and when. The orchestrator applies the
decision through whatever TaskQueue it was given.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.app.core.config import Settings, get_settings
from src.app.core.exceptions import is_permanent
from src.app.provisioning.models import ProvisioningTask, RetryAction, RetryDecision

DEFAULT_BACKOFF = (timedelta(minutes=1), timedelta(minutes=5), timedelta(minutes=15))


@dataclass(frozen=True)
class ProvisioningRetryPolicy:
    """Attempt budget, backoff schedule and per-attempt timeout."""

    max_attempts: int = 3
    backoff: tuple[timedelta, ...] = DEFAULT_BACKOFF
    attempt_timeout: timedelta = timedelta(minutes=10)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not self.backoff:
            raise ValueError("backoff schedule cannot be empty")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ProvisioningRetryPolicy":
        settings = settings or get_settings()
        return cls(
            max_attempts=settings.provisioning_max_attempts,
            backoff=tuple(timedelta(seconds=s) for s in settings.provisioning_backoff_seconds),
            attempt_timeout=timedelta(seconds=settings.provisioning_attempt_timeout_seconds),
        )

    def backoff_for(self, attempt: int) -> timedelta:
        """Delay to wait after the given (1-based) attempt fails.

        The schedule is clamped to its last entry for attempts beyond it.
        """
        index = min(max(attempt, 1), len(self.backoff)) - 1
        return self.backoff[index]

    def decide(self, task: ProvisioningTask, error: BaseException, now: datetime) -> RetryDecision:
        """Classify a failed attempt as retry-with-backoff or terminal failure."""
        if is_permanent(error):
            return RetryDecision(
                action=RetryAction.FAIL,
                attempt=task.attempt,
                reason=f"permanent error: {type(error).__name__}",
            )

        if task.attempt >= self.max_attempts:
            return RetryDecision(
                action=RetryAction.FAIL,
                attempt=task.attempt,
                reason=f"retry budget exhausted after {task.attempt} attempts",
            )

        delay = self.backoff_for(task.attempt)
        return RetryDecision(
            action=RetryAction.RETRY,
            attempt=task.attempt,
            reason=f"transient error: {type(error).__name__}",
            delay=delay,
            next_eligible_at=now + delay,
        )
