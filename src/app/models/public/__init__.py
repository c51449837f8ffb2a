"""Central database models.

The tenant registry lives here. Tenant-database models go in models/tenant/.
"""

from src.app.models.enums import TenantStatus
from src.app.models.public.tenant import Tenant

__all__ = [
    # Enums
    "TenantStatus",
    # Models
    "Tenant",
]
