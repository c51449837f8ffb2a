"""Shared workflow step utilities."""

from datetime import timedelta

from temporalio.common import RetryPolicy

# Exactly one execution: provisioning attempts are retried by the orchestrator
SINGLE_ATTEMPT = RetryPolicy(maximum_attempts=1)

# Slack on top of the in-process attempt timeout, so the orchestrator gets to
# record its own timeout before Temporal abandons the activity.
ATTEMPT_TIMEOUT_GRACE = timedelta(seconds=30)


def short_activity_opts() -> dict[str, object]:
    """Options for quick activities (registry reads, status updates)."""
    return {
        "start_to_close_timeout": timedelta(seconds=30),
        "retry_policy": RetryPolicy(
            maximum_attempts=3,
            initial_interval=timedelta(seconds=1),
        ),
    }


def long_activity_opts() -> dict[str, object]:
    """Options for long activities (database DDL, migrations)."""
    return {
        "start_to_close_timeout": timedelta(minutes=10),
        "retry_policy": RetryPolicy(
            maximum_attempts=3,
            initial_interval=timedelta(seconds=2),
        ),
    }


def attempt_activity_opts(attempt_timeout_seconds: int) -> dict[str, object]:
    """Options for one whole provisioning attempt."""
    return {
        "start_to_close_timeout": timedelta(seconds=attempt_timeout_seconds)
        + ATTEMPT_TIMEOUT_GRACE,
        "retry_policy": SINGLE_ATTEMPT,
    }
