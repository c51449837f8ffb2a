"""Baseline roles and permissions for a tenant database.

Seeding uses select-then-insert for every row, so running it against an
already seeded database converges to the same set without duplicates. The
caller owns the session and the transaction.
"""

from dataclasses import dataclass

from sqlmodel import Session, select

from src.app.core.logging import get_logger
from src.app.models.tenant import Permission, Role, RolePermission

logger = get_logger(__name__)

ADMIN_ROLE = "admin"

BASELINE_PERMISSIONS: tuple[str, ...] = (
    # Processes
    "processes.create",
    "processes.edit",
    "processes.delete",
    "processes.mark_won",
    "processes.mark_lost",
    "processes.view",
    # Process items
    "process_items.create",
    "process_items.edit",
    "process_items.delete",
    # Quotes
    "quotes.create",
    "quotes.edit",
    "quotes.delete",
    # Pricing
    "pricing.create",
    "pricing.edit",
    # Bidding
    "disputes.edit",
    "judgments.edit",
    # Finance
    "costs.manage",
    "costs.view",
    "payments.confirm",
    # Reports
    "reports.view",
)

# None grants every baseline permission.
BASELINE_ROLES: dict[str, tuple[str, ...] | None] = {
    ADMIN_ROLE: None,
    "operations": (
        "processes.create",
        "processes.edit",
        "processes.view",
        "processes.mark_won",
        "processes.mark_lost",
        "process_items.create",
        "process_items.edit",
        "process_items.delete",
        "quotes.create",
        "quotes.edit",
        "quotes.delete",
        "pricing.create",
        "pricing.edit",
        "disputes.edit",
        "judgments.edit",
        "reports.view",
    ),
    "finance": (
        "processes.view",
        "costs.manage",
        "costs.view",
        "payments.confirm",
        "reports.view",
    ),
    "viewer": (
        "processes.view",
        "reports.view",
    ),
}


@dataclass(frozen=True)
class SeedResult:
    """Rows inserted by one seed run. All zero on an already seeded database."""

    permissions_created: int = 0
    roles_created: int = 0
    grants_created: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.permissions_created or self.roles_created or self.grants_created)


class RoleSeeder:
    """Upsert the baseline RBAC set into the database behind a session."""

    def __init__(
        self,
        permissions: tuple[str, ...] = BASELINE_PERMISSIONS,
        roles: dict[str, tuple[str, ...] | None] | None = None,
    ):
        self.permissions = permissions
        self.roles = roles if roles is not None else BASELINE_ROLES

    def _ensure_permissions(self, session: Session) -> tuple[dict[str, int], int]:
        existing = {p.name: p for p in session.exec(select(Permission))}
        created = 0
        for name in self.permissions:
            if name not in existing:
                permission = Permission(name=name)
                session.add(permission)
                existing[name] = permission
                created += 1
        session.flush()
        return {name: p.id for name, p in existing.items() if p.id is not None}, created

    def _ensure_role(self, session: Session, name: str) -> tuple[Role, bool]:
        role = session.exec(select(Role).where(Role.name == name)).first()
        if role is not None:
            return role, False
        role = Role(name=name)
        session.add(role)
        session.flush()
        return role, True

    def _grant(self, session: Session, role_id: int, permission_ids: list[int]) -> int:
        granted = set(
            session.exec(
                select(RolePermission.permission_id).where(RolePermission.role_id == role_id)
            )
        )
        missing = [pid for pid in permission_ids if pid not in granted]
        for permission_id in missing:
            session.add(RolePermission(role_id=role_id, permission_id=permission_id))
        return len(missing)

    def seed(self, session: Session) -> SeedResult:
        """Create missing permissions, roles and grants. Does not commit."""
        permission_ids, permissions_created = self._ensure_permissions(session)

        roles_created = 0
        grants_created = 0
        for role_name, granted in self.roles.items():
            role, created = self._ensure_role(session, role_name)
            roles_created += int(created)
            names = self.permissions if granted is None else granted
            unknown = [name for name in names if name not in permission_ids]
            if unknown:
                raise ValueError(f"Role '{role_name}' grants unknown permissions: {unknown}")
            grants_created += self._grant(
                session,
                role.id,  # type: ignore[arg-type]
                [permission_ids[name] for name in names],
            )
        session.flush()

        result = SeedResult(permissions_created, roles_created, grants_created)
        logger.info(
            "Roles seeded",
            permissions_created=permissions_created,
            roles_created=roles_created,
            grants_created=grants_created,
        )
        return result

    def role_id(self, session: Session, name: str = ADMIN_ROLE) -> int | None:
        """Id of a seeded role, or None if it does not exist."""
        return session.exec(select(Role.id).where(Role.name == name)).first()
