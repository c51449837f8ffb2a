"""Shared enums for models."""

from enum import Enum


class TenantStatus(str, Enum):
    """Tenant provisioning status.

    pending -> processing -> (ativa | failed). Values match the central
    database rows shared with the rest of the platform.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    ACTIVE = "ativa"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TenantStatus.ACTIVE, TenantStatus.FAILED)
