"""First business entities of a new tenant: its company and administrator.

Both operations look the row up by its natural key before inserting, so a
retried attempt that already got this far reuses what it created.
"""

from sqlmodel import Session, select

from src.app.core.logging import get_logger
from src.app.models.tenant import Company, User
from src.app.provisioning.models import TenantCreationPayload

logger = get_logger(__name__)


class TenantBootstrapService:
    """Create the company and first admin user inside a tenant database."""

    def create_company(self, session: Session, payload: TenantCreationPayload) -> int:
        """Create the tenant's company. Returns the existing id for a known tax id."""
        existing = session.exec(select(Company).where(Company.tax_id == payload.tax_id)).first()
        if existing is not None and existing.id is not None:
            logger.info("Company already exists", company_id=existing.id)
            return existing.id

        company = Company(
            name=payload.company_name,
            tax_id=payload.tax_id,
            email=payload.email,
            phone=payload.phone,
            address=payload.address,
        )
        session.add(company)
        session.flush()  # Get company.id
        logger.info("Company created", company_id=company.id)
        return company.id  # type: ignore[return-value]

    def create_admin(
        self,
        session: Session,
        company_id: int,
        payload: TenantCreationPayload,
        role_id: int | None,
    ) -> int | None:
        """Create the first administrator.

        Returns:
            The new user id, the existing id when the email is already taken,
            or None when the payload carries no admin credentials.
        """
        if not payload.has_admin():
            logger.info("No admin data supplied, skipping admin creation", company_id=company_id)
            return None

        email = (payload.admin_email or "").lower()
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing is not None and existing.id is not None:
            logger.info("Admin user already exists", user_id=existing.id)
            return existing.id

        user = User(
            company_id=company_id,
            role_id=role_id,
            name=payload.admin_name or "",
            email=email,
            hashed_password=payload.admin_password_hash or "",
        )
        session.add(user)
        session.flush()  # Get user.id
        logger.info("Admin user created", user_id=user.id, company_id=company_id)
        return user.id
