"""Tenant provisioning state machine.

One call to handle() is one attempt: pending/processing -> ativa on success,
or back onto the queue with backoff, or failed once the retry policy gives
up. Each step is idempotent, so a retried attempt converges on the same
database, roles, company and admin user the failed one left behind.

Steps:
1. Resolve the tenant's database: resume, claim from the pool, or create
2. Run the tenant migration set
3. Open a session on the tenant database
4. Seed baseline roles and permissions
5. Create the company and (when supplied) the first admin user
6. Close the tenant session
7. Mark the tenant ativa and publish TenantProvisioned
"""

import asyncio
from collections.abc import Callable
from datetime import datetime

from src.app.core.db import DatabaseAdmin
from src.app.core.exceptions import AttemptTimeoutError, TenantNotFoundError
from src.app.core.logging import bind_provisioning_context, clear_provisioning_context, get_logger
from src.app.models.base import utc_now
from src.app.models.public import Tenant, TenantStatus
from src.app.provisioning.interfaces import EventBus, TaskQueue, TenantStore
from src.app.provisioning.models import (
    PROVISION_TENANT_TASK,
    OutcomeStatus,
    ProvisionedTenant,
    ProvisioningOutcome,
    ProvisioningTask,
    TenantCreationPayload,
    TenantProvisioned,
)
from src.app.provisioning.retry import ProvisioningRetryPolicy
from src.app.services.database_lifecycle_service import DatabaseLifecycleService
from src.app.services.database_pool_service import DatabasePoolService
from src.app.services.role_seeder import RoleSeeder
from src.app.services.tenant_bootstrap_service import TenantBootstrapService

logger = get_logger(__name__)


class ProvisioningOrchestrator:
    """Drive one tenant through allocation, migration, seeding and activation."""

    def __init__(
        self,
        *,
        tenants: TenantStore,
        admin: DatabaseAdmin,
        lifecycle: DatabaseLifecycleService,
        pool: DatabasePoolService,
        queue: TaskQueue,
        events: EventBus,
        seeder: RoleSeeder | None = None,
        bootstrap: TenantBootstrapService | None = None,
        policy: ProvisioningRetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.tenants = tenants
        self.admin = admin
        self.lifecycle = lifecycle
        self.pool = pool
        self.queue = queue
        self.events = events
        self.seeder = seeder or RoleSeeder()
        self.bootstrap = bootstrap or TenantBootstrapService()
        self.policy = policy or ProvisioningRetryPolicy.from_settings()
        self.clock = clock

    async def handle(self, task: ProvisioningTask) -> ProvisioningOutcome:
        """Run one provisioning attempt and apply the retry policy on failure.

        Failures inside the attempt, loading the tenant row included, never
        escape: they are turned into a retry or a terminal failure. Only a
        failure to re-enqueue or to record the failure propagates, so the
        caller can mark the tenant failed itself.
        """
        bind_provisioning_context(task.tenant_id, task.attempt)
        try:
            return await self._handle(task)
        finally:
            clear_provisioning_context()

    async def _handle(self, task: ProvisioningTask) -> ProvisioningOutcome:
        timeout = self.policy.attempt_timeout.total_seconds()
        try:
            # Step 0
            tenant = await asyncio.to_thread(self.tenants.get, task.tenant_id)
            if tenant is None:
                logger.error("Tenant not found, dropping provisioning task")
                return ProvisioningOutcome(
                    tenant_id=task.tenant_id,
                    attempt=task.attempt,
                    status=OutcomeStatus.SKIPPED,
                    error=str(TenantNotFoundError(task.tenant_id)),
                )

            if tenant.is_terminal:
                logger.info("Tenant already provisioned or failed, skipping", status=tenant.status)
                return ProvisioningOutcome(
                    tenant_id=task.tenant_id,
                    attempt=task.attempt,
                    status=OutcomeStatus.SKIPPED,
                )

            await asyncio.to_thread(
                self.tenants.update_status, task.tenant_id, TenantStatus.PROCESSING
            )
            logger.info("Provisioning attempt started")

            try:
                result = await asyncio.wait_for(self._run_steps(task, tenant), timeout=timeout)
            except TimeoutError as e:
                raise AttemptTimeoutError(task.tenant_id, timeout) from e
        except Exception as e:
            return await self._on_failure(task, e)

        await self._publish(result)
        return ProvisioningOutcome(
            tenant_id=task.tenant_id,
            attempt=task.attempt,
            status=OutcomeStatus.COMPLETED,
            result=result,
        )

    async def _run_steps(self, task: ProvisioningTask, tenant: Tenant) -> ProvisionedTenant:
        # Step 1
        database_name, from_pool = await asyncio.to_thread(
            self._allocate_database, task.tenant_id, tenant.database_name
        )

        # Step 2 - also for pooled databases, which may lag behind the latest revision
        await asyncio.to_thread(self.lifecycle.run_migrations, database_name)

        # Steps 3-6
        company_id, admin_user_id = await asyncio.to_thread(
            self._populate, database_name, task.payload
        )

        # Step 7
        updated = await asyncio.to_thread(
            self.tenants.update_status, task.tenant_id, TenantStatus.ACTIVE
        )
        if not updated:
            raise TenantNotFoundError(task.tenant_id)

        logger.info(
            "Tenant provisioned",
            database=database_name,
            from_pool=from_pool,
            company_id=company_id,
            admin_user_id=admin_user_id,
        )
        return ProvisionedTenant(
            tenant_id=task.tenant_id,
            database_name=database_name,
            company_id=company_id,
            admin_user_id=admin_user_id,
            from_pool=from_pool,
        )

    def _allocate_database(self, tenant_id: int, recorded: str | None) -> tuple[str, bool]:
        """Return (database_name, from_pool).

        A database recorded by an earlier attempt is resumed as-is; the later
        steps are idempotent against whatever it already holds. An unrecorded
        tenant_<id> (an attempt that died before recording it) goes through
        the creation checks: reused when empty, a conflict when populated.
        The pool is only consulted when no such database exists.
        """
        expected = self.lifecycle.database_name_for(tenant_id)
        exists = self.admin.database_exists(expected)
        if recorded == expected and exists:
            logger.info("Resuming database from previous attempt", database=expected)
            return expected, False

        if exists:
            logger.warning("Found unrecorded tenant database", database=expected)
        else:
            claim = self.pool.claim(tenant_id)
            if claim is not None:
                return claim.database_name, True
            logger.info("No pooled database available, creating one", database=expected)

        self.lifecycle.create_database(tenant_id)
        if not self.tenants.assign_database(tenant_id, expected):
            raise TenantNotFoundError(tenant_id)
        return expected, False

    def _populate(
        self, database_name: str, payload: TenantCreationPayload
    ) -> tuple[int, int | None]:
        """Seed roles and create the company and admin in one tenant transaction."""
        with self.admin.tenant_session(database_name) as session:
            self.seeder.seed(session)
            company_id = self.bootstrap.create_company(session, payload)
            admin_user_id = self.bootstrap.create_admin(
                session, company_id, payload, self.seeder.role_id(session)
            )
            session.commit()
        return company_id, admin_user_id

    async def _publish(self, result: ProvisionedTenant) -> None:
        event = TenantProvisioned(
            tenant_id=result.tenant_id,
            company_id=result.company_id,
            admin_user_id=result.admin_user_id,
        )
        try:
            await self.events.publish(event)
        except Exception as e:
            # The tenant is already active; consumers can reconcile from the registry
            logger.warning(
                "Failed to publish tenant event", event_name=event.event_name, error=str(e)
            )

    async def _on_failure(self, task: ProvisioningTask, error: Exception) -> ProvisioningOutcome:
        decision = self.policy.decide(task, error, self.clock())

        if decision.should_retry and decision.next_eligible_at is not None:
            logger.warning(
                "Provisioning attempt failed, retry scheduled",
                error=str(error),
                error_type=type(error).__name__,
                delay_seconds=decision.delay.total_seconds() if decision.delay else 0,
                next_eligible_at=decision.next_eligible_at,
            )
            await self.queue.enqueue(
                PROVISION_TENANT_TASK,
                task.next_attempt(decision.next_eligible_at),
                decision.delay,
            )
            return ProvisioningOutcome(
                tenant_id=task.tenant_id,
                attempt=task.attempt,
                status=OutcomeStatus.RETRY_SCHEDULED,
                decision=decision,
                error=str(error),
            )

        logger.error(
            "Provisioning failed permanently",
            error=str(error),
            error_type=type(error).__name__,
            reason=decision.reason,
        )
        await asyncio.to_thread(self.tenants.update_status, task.tenant_id, TenantStatus.FAILED)
        return ProvisioningOutcome(
            tenant_id=task.tenant_id,
            attempt=task.attempt,
            status=OutcomeStatus.FAILED,
            decision=decision,
            error=str(error),
        )
