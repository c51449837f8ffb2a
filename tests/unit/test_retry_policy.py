"""Tests for the queue-agnostic provisioning retry state machine."""

from datetime import UTC, datetime, timedelta

import pytest

from src.app.core.config import Settings
from src.app.core.exceptions import (
    AttemptTimeoutError,
    DatabaseConflictError,
    TenantNotFoundError,
)
from src.app.provisioning.models import ProvisioningTask, RetryAction, TenantCreationPayload
from src.app.provisioning.retry import ProvisioningRetryPolicy

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
PAYLOAD = TenantCreationPayload(company_name="Acme", tax_id="12345678000199")


def task(attempt: int) -> ProvisioningTask:
    return ProvisioningTask(tenant_id=42, payload=PAYLOAD, attempt=attempt)


class TestBackoff:
    def test_default_schedule(self):
        policy = ProvisioningRetryPolicy()
        assert policy.backoff_for(1) == timedelta(minutes=1)
        assert policy.backoff_for(2) == timedelta(minutes=5)
        assert policy.backoff_for(3) == timedelta(minutes=15)

    def test_schedule_clamps_to_last_entry(self):
        policy = ProvisioningRetryPolicy(max_attempts=10)
        assert policy.backoff_for(7) == timedelta(minutes=15)

    def test_invalid_configuration_rejected(self):
        with pytest.raises(ValueError):
            ProvisioningRetryPolicy(max_attempts=0)
        with pytest.raises(ValueError):
            ProvisioningRetryPolicy(backoff=())

    def test_from_settings(self):
        settings = Settings(
            provisioning_max_attempts=5,
            provisioning_backoff_seconds=[10, 20],
            provisioning_attempt_timeout_seconds=30,
        )
        policy = ProvisioningRetryPolicy.from_settings(settings)
        assert policy.max_attempts == 5
        assert policy.backoff == (timedelta(seconds=10), timedelta(seconds=20))
        assert policy.attempt_timeout == timedelta(seconds=30)


class TestDecide:
    def test_transient_error_is_retried_with_backoff(self):
        decision = ProvisioningRetryPolicy().decide(task(1), RuntimeError("boom"), NOW)

        assert decision.action == RetryAction.RETRY
        assert decision.should_retry
        assert decision.delay == timedelta(seconds=60)
        assert decision.next_eligible_at == NOW + timedelta(seconds=60)

    def test_second_failure_waits_longer(self):
        decision = ProvisioningRetryPolicy().decide(task(2), RuntimeError("boom"), NOW)
        assert decision.delay == timedelta(seconds=300)

    def test_timeout_is_transient(self):
        decision = ProvisioningRetryPolicy().decide(task(1), AttemptTimeoutError(42, 600), NOW)
        assert decision.should_retry

    def test_budget_exhausted_after_last_attempt(self):
        decision = ProvisioningRetryPolicy().decide(task(3), RuntimeError("boom"), NOW)

        assert decision.action == RetryAction.FAIL
        assert decision.delay is None
        assert "exhausted" in decision.reason

    @pytest.mark.parametrize(
        "error",
        [DatabaseConflictError("tenant_42", table_count=3), TenantNotFoundError(42)],
    )
    def test_permanent_errors_fail_immediately(self, error: Exception):
        decision = ProvisioningRetryPolicy().decide(task(1), error, NOW)

        assert decision.action == RetryAction.FAIL
        assert "permanent" in decision.reason

    def test_next_attempt_increments_counter(self):
        later = NOW + timedelta(minutes=1)
        nxt = task(1).next_attempt(later)
        assert nxt.attempt == 2
        assert nxt.not_before == later
        assert nxt.payload == PAYLOAD
