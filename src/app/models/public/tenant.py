"""Tenant model - registry in the central database."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now
from src.app.models.enums import TenantStatus


class Tenant(SQLModel, table=True):
    """Tenant registry in the central database."""

    __tablename__ = "tenants"
    __table_args__ = {"schema": "public"}

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, index=True)
    tax_id: str = Field(max_length=32, index=True)
    email: str | None = Field(default=None, max_length=255)
    status: str = Field(default=TenantStatus.PENDING.value, max_length=20)
    database_name: str | None = Field(default=None, max_length=63, unique=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> TenantStatus:
        """Get status as TenantStatus enum."""
        return TenantStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        """True once provisioning has finished, successfully or not."""
        return self.status_enum.is_terminal
