"""Model exports.

Import from here: `from src.app.models import Tenant, Company`
"""

# Enums
from src.app.models.enums import TenantStatus

# Central database models
from src.app.models.public import Tenant

# Tenant database models
from src.app.models.tenant import Company, Permission, Role, RolePermission, User

__all__ = [
    # Enums
    "TenantStatus",
    # Central database models
    "Tenant",
    # Tenant database models
    "Company",
    "Permission",
    "Role",
    "RolePermission",
    "User",
]
