"""Business logic for company operations."""

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AccessDeniedError, NoCompanyError, NotFoundError, ValidationError, store_boundary
)
from app.schemas.company import CompanyCreate, CompanyUpdate
from src.database.models import Company, User
from src.database.repository import CompanyRepository

logger = logging.getLogger(__name__)

LOAD_COMPANY_FAILED = "Kunne ikke laste bedriftsinformasjon. Vennligst prøv igjen senere."
ANONYMOUS_ID_ATTEMPTS = 5


def generate_anonymous_id() -> str:
    return f"Bedrift-{uuid.uuid4().hex[:6].upper()}"


class CompanyService:
    """Service class for company-related operations."""

    @staticmethod
    def create_company(db: Session, company_data: CompanyCreate, user_id: str) -> Company:
        """
        Create a new company and associate it with the user.

        Args:
            db: Database session
            company_data: Real contact details of the company
            user_id: Clerk user ID

        Returns:
            Created company

        Raises:
            NotFoundError: If the user has not been synced yet
            ValidationError: If the user already has a company
        """
        with store_boundary("create_company"):
            user = db.query(User).filter_by(id=user_id).first()
            if not user:
                raise NotFoundError("User", user_id)

            if user.company_id:
                raise ValidationError("User already belongs to a company")

            anonymous_id = generate_anonymous_id()
            for _ in range(ANONYMOUS_ID_ATTEMPTS):
                if not CompanyRepository.anonymous_id_exists(db, anonymous_id):
                    break
                anonymous_id = generate_anonymous_id()

            try:
                company = CompanyRepository.create_company(
                    db,
                    anonymous_id=anonymous_id,
                    **company_data.model_dump()
                )

                # Associate user with company
                user.company_id = company.id

                db.commit()
                db.refresh(company)

            except IntegrityError:
                db.rollback()
                raise ValidationError("Kunne ikke opprette bedrift. Prøv igjen.")

        logger.info(f"[COMPANY] Created {company.anonymous_id} for user {user_id}")
        return company

    @staticmethod
    def get_company_by_id(db: Session, company_id: str) -> Company:
        """Get company by ID."""
        with store_boundary("get_company", LOAD_COMPANY_FAILED):
            company = CompanyRepository.get_company_by_id(db, company_id)
        if not company:
            raise NotFoundError("Company", company_id)
        return company

    @staticmethod
    def find_user_company(db: Session, user_id: str) -> Optional[Company]:
        """Get the company that a user belongs to, or None."""
        with store_boundary("get_user_company", LOAD_COMPANY_FAILED):
            return CompanyRepository.get_company_for_user(db, user_id)

    @staticmethod
    def get_user_company(db: Session, user_id: str) -> Company:
        """
        Map a user to exactly one company.

        Raises:
            NoCompanyError: If the user has not registered a company
        """
        company = CompanyService.find_user_company(db, user_id)
        if not company:
            raise NoCompanyError(user_id)
        return company

    @staticmethod
    def update_contact_details(
        db: Session,
        company_id: str,
        acting_company_id: str,
        company_data: CompanyUpdate
    ) -> Company:
        """
        Update the real contact details of a company.

        Only the owning company may change its own fields.
        """
        if company_id != acting_company_id:
            raise AccessDeniedError("Bare eieren kan endre kontaktinformasjonen.")

        with store_boundary("update_company", LOAD_COMPANY_FAILED):
            company = CompanyRepository.get_company_by_id(db, company_id)
            if not company:
                raise NotFoundError("Company", company_id)

            update_data = company_data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                setattr(company, field, value)

            db.commit()
            db.refresh(company)

        logger.info(f"[COMPANY] Updated contact details for {company.anonymous_id}: {sorted(update_data)}")
        return company
