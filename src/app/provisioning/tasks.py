"""Building and enqueueing provisioning tasks.

The admin password is hashed here, before the task exists, so plaintext
credentials never reach the queue.
"""

from src.app.core.security import hash_password
from src.app.models.public import Tenant
from src.app.provisioning.interfaces import TaskQueue
from src.app.provisioning.models import (
    PROVISION_TENANT_TASK,
    ProvisioningTask,
    TenantCreationPayload,
)


def new_provisioning_task(
    tenant_id: int,
    *,
    company_name: str,
    tax_id: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
    admin_name: str | None = None,
    admin_email: str | None = None,
    admin_password: str | None = None,
) -> ProvisioningTask:
    """First-attempt task for a freshly registered tenant."""
    payload = TenantCreationPayload(
        company_name=company_name,
        tax_id=tax_id,
        email=email,
        phone=phone,
        address=address,
        admin_name=admin_name,
        admin_email=admin_email,
        admin_password_hash=hash_password(admin_password) if admin_password else None,
    )
    return ProvisioningTask(tenant_id=tenant_id, payload=payload)


def operator_retry_task(tenant: Tenant) -> ProvisioningTask:
    """Fresh task for re-running a failed tenant from its registry row.

    The original admin credentials are not stored, so the retry only carries
    company data; an admin created by an earlier attempt is kept.
    """
    if tenant.id is None:
        raise ValueError("Tenant has no id")
    payload = TenantCreationPayload(
        company_name=tenant.name,
        tax_id=tenant.tax_id,
        email=tenant.email,
    )
    return ProvisioningTask(tenant_id=tenant.id, payload=payload)


async def enqueue_provisioning(queue: TaskQueue, task: ProvisioningTask) -> None:
    """Queue a task for immediate processing."""
    await queue.enqueue(PROVISION_TENANT_TASK, task)
