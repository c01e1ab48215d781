"""API dependencies."""

from typing import Generator, Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from src.database.connection import DatabaseManager
from src.database.models import Company
from app.core.config import Settings, get_settings
from app.core.security import parse_bearer_user_id
from app.services.company_service import CompanyService


def get_db() -> Generator[Session, None, None]:
    """
    Get database session.

    Yields:
        Database session
    """
    with DatabaseManager.get_session() as session:
        yield session


def get_current_settings() -> Settings:
    """Get current application settings."""
    return get_settings()


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """
    Extract user ID from the Authorization header.

    The frontend sends "Bearer <clerk_user_id>".
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_id = parse_bearer_user_id(authorization)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return user_id


def get_current_company(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> Company:
    """
    Resolve the authenticated user's company.

    Raises NoCompanyError (404) if the user has not registered one.
    """
    return CompanyService.get_user_company(db, user_id)
