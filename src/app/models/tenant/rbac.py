"""Role and permission models - live in each tenant database."""

from sqlmodel import Field, SQLModel


class Permission(SQLModel, table=True):
    """A named capability, e.g. 'processes.create'."""

    __tablename__ = "permissions"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)


class Role(SQLModel, table=True):
    """A named bundle of permissions."""

    __tablename__ = "roles"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)


class RolePermission(SQLModel, table=True):
    """Junction table for role grants."""

    __tablename__ = "role_permissions"

    role_id: int = Field(foreign_key="roles.id", primary_key=True, ondelete="CASCADE")
    permission_id: int = Field(
        foreign_key="permissions.id", primary_key=True, ondelete="CASCADE"
    )
