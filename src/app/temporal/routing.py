from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import StrEnum

from temporalio.common import Priority


class QueueKind(StrEnum):
    """Workflow workload types for queue routing."""

    TENANT = "tenant"  # Tenant-scoped workflows (provisioning, deletion)
    JOBS = "jobs"  # System-wide background jobs (pool replenishment)


@dataclass(frozen=True)
class TemporalRoute:
    """Routing result for workflow execution."""

    namespace: str
    task_queue: str
    priority: Priority | None = None


def _stable_shard(key: str, shards: int) -> int:
    """Compute stable shard from key using SHA256 (not Python hash())."""
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % max(1, shards)


def task_queue_name(prefix: str, kind: QueueKind, shard: int) -> str:
    """Generate task queue name: {prefix}.{kind}.{shard:02d}"""
    return f"{prefix}.{kind}.{shard:02d}"


def route_for_tenant(
    *,
    tenant_id: int,
    namespace: str,
    prefix: str,
    shards: int,
    kind: QueueKind = QueueKind.TENANT,
    fairness_weight: int = 1,
) -> TemporalRoute:
    """
    Get routing info for a tenant-scoped workflow.

    All workflows of one tenant land on the same shard, so its attempts never
    compete with each other across queues.

    Args:
        tenant_id: Central tenant id
        namespace: Temporal namespace
        prefix: Queue name prefix (e.g., "provisioning")
        shards: Number of queue shards (1, 32, 64)
        kind: Workload type for queue selection
        fairness_weight: Priority weight (higher = more capacity)

    Returns:
        TemporalRoute with task_queue and fairness priority
    """
    key = str(tenant_id)
    shard = _stable_shard(key, shards)
    tq = task_queue_name(prefix, kind, shard)

    # Task Queue Fairness uses Priority.fairness_key / fairness_weight
    priority = Priority(fairness_key=key, fairness_weight=fairness_weight)

    return TemporalRoute(namespace=namespace, task_queue=tq, priority=priority)


def route_for_system_job(
    *,
    namespace: str,
    prefix: str,
    kind: QueueKind = QueueKind.JOBS,
) -> TemporalRoute:
    """
    Get routing info for system-level jobs (not tenant-scoped).

    Uses shard 00 for predictable routing.
    """
    tq = task_queue_name(prefix, kind, shard=0)
    return TemporalRoute(namespace=namespace, task_queue=tq)
