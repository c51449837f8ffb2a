"""Tenant database models.

These tables are created by the tenant migration set in every tenant (and
pool) database; they carry no schema qualifier.
"""

from src.app.models.tenant.company import Company, User
from src.app.models.tenant.rbac import Permission, Role, RolePermission

TENANT_TABLES = ("permissions", "roles", "role_permissions", "companies", "users")

__all__ = [
    "TENANT_TABLES",
    "Company",
    "Permission",
    "Role",
    "RolePermission",
    "User",
]
