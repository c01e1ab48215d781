"""User service for mirroring identity-provider users."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from app.core.exceptions import store_boundary
from src.database.models import Company, User
from app.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service for user-related operations."""

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID."""
        with store_boundary("get_user"):
            return db.query(User).filter_by(id=user_id).first()

    @staticmethod
    def create_user(db: Session, user_data: UserCreate, clerk_metadata: dict = None) -> User:
        """Create a new user, or return the existing one on webhook redelivery."""
        with store_boundary("create_user"):
            existing = db.query(User).filter_by(id=user_data.id).first()
            if existing:
                return existing

            user = User(
                id=user_data.id,
                email=user_data.email,
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                profile_image_url=user_data.profile_image_url,
                clerk_metadata=clerk_metadata or {},
                created_at=datetime.utcnow(),
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user_id: str, user_data: UserUpdate, clerk_metadata: dict = None) -> Optional[User]:
        """Update an existing user."""
        with store_boundary("update_user"):
            user = db.query(User).filter_by(id=user_id).first()
            if not user:
                return None

            update_data = user_data.model_dump(exclude_unset=True, exclude_none=True)
            for field, value in update_data.items():
                setattr(user, field, value)

            if clerk_metadata:
                user.clerk_metadata = clerk_metadata

            user.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(user)
        return user

    @staticmethod
    def delete_user(db: Session, user_id: str) -> bool:
        """
        Delete a user together with their company.

        The company's resources go with it; messages that referenced the
        company or its resources stay behind with NULL references and are
        dropped from thread lists.
        """
        with store_boundary("delete_user"):
            user = db.query(User).filter_by(id=user_id).first()
            if not user:
                return False

            company = db.query(Company).filter_by(id=user.company_id).first() if user.company_id else None
            db.delete(user)
            if company:
                db.delete(company)
                logger.info(f"[USER] Deleted company {company.anonymous_id} with user {user_id}")
            db.commit()
        return True

    @staticmethod
    def update_last_sign_in(db: Session, user_id: str) -> Optional[User]:
        """Update user's last sign in timestamp."""
        with store_boundary("update_last_sign_in"):
            user = db.query(User).filter_by(id=user_id).first()
            if not user:
                return None

            user.last_sign_in_at = datetime.utcnow()
            db.commit()
            db.refresh(user)
        return user
