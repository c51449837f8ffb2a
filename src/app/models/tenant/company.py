"""Company and user models - the first business entities of a tenant database."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now


class Company(SQLModel, table=True):
    """The company a tenant database belongs to."""

    __tablename__ = "companies"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    tax_id: str = Field(max_length=32, unique=True, index=True)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    address: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utc_now)


class User(SQLModel, table=True):
    """A user account inside a tenant database."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    company_id: int = Field(foreign_key="companies.id", index=True)
    role_id: int | None = Field(default=None, foreign_key="roles.id")
    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str = Field(max_length=255)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
