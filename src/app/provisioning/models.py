"""Provisioning task payloads, results and events.

These are plain dataclasses so they travel through the Temporal data
converter unchanged (workflow arguments, activity inputs and results).
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import StrEnum
from typing import ClassVar

PROVISION_TENANT_TASK = "provision_tenant"


@dataclass(frozen=True)
class TenantCreationPayload:
    """Data needed to create the tenant's first business entities.

    The admin password is hashed before the task is enqueued, so plaintext
    credentials never reach the queue or workflow history.
    """

    company_name: str
    tax_id: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    admin_name: str | None = None
    admin_email: str | None = None
    admin_password_hash: str | None = None

    def has_admin(self) -> bool:
        """True when enough data was supplied to create the first administrator."""
        return bool(self.admin_name and self.admin_email and self.admin_password_hash)


@dataclass(frozen=True)
class ProvisioningTask:
    """Unit of async work: one provisioning attempt for one tenant."""

    tenant_id: int
    payload: TenantCreationPayload
    attempt: int = 1
    not_before: datetime | None = None

    def next_attempt(self, not_before: datetime) -> "ProvisioningTask":
        """Same task, attempt counter incremented, eligible from not_before."""
        return replace(self, attempt=self.attempt + 1, not_before=not_before)


class RetryAction(StrEnum):
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class RetryDecision:
    """What to do after a failed attempt."""

    action: RetryAction
    attempt: int
    reason: str
    delay: timedelta | None = None
    next_eligible_at: datetime | None = None

    @property
    def should_retry(self) -> bool:
        return self.action == RetryAction.RETRY


class OutcomeStatus(StrEnum):
    COMPLETED = "completed"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ProvisionedTenant:
    """Identifiers produced by a successful attempt."""

    tenant_id: int
    database_name: str
    company_id: int
    admin_user_id: int | None = None
    from_pool: bool = False


@dataclass(frozen=True)
class ProvisioningOutcome:
    """Result of handling one task."""

    tenant_id: int
    attempt: int
    status: OutcomeStatus
    result: ProvisionedTenant | None = None
    decision: RetryDecision | None = None
    error: str | None = None


@dataclass(frozen=True)
class TenantProvisioned:
    """Event emitted once a tenant is active."""

    tenant_id: int
    company_id: int
    admin_user_id: int | None = None
    event_name: ClassVar[str] = "tenant.provisioned"
