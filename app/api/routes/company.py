"""Company management API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_company, get_current_user_id, get_db
from app.schemas.company import CompanyCreate, CompanyPublic, CompanyResponse, CompanyUpdate
from app.services.company_service import CompanyService
from src.database.models import Company

router = APIRouter()


@router.post("/create", response_model=CompanyResponse, status_code=201)
async def create_company(
    company_data: CompanyCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Register the user's company during onboarding.

    The company gets a generated anonymous id that other companies see
    until contact details are shared in a thread.
    """
    return CompanyService.create_company(db, company_data, user_id)


@router.get("/me", response_model=CompanyResponse)
async def get_my_company(company: Company = Depends(get_current_company)):
    """
    Get the company that the current user belongs to.

    Returns 404 if user hasn't registered a company yet.
    """
    return company


@router.put("/update", response_model=CompanyResponse)
async def update_company(
    company_data: CompanyUpdate,
    company: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Update the current company's own contact details."""
    return CompanyService.update_contact_details(db, company.id, company.id, company_data)


@router.get("/{company_id}", response_model=CompanyPublic)
async def get_company_profile(
    company_id: str,
    _: Company = Depends(get_current_company),
    db: Session = Depends(get_db)
):
    """Public profile of another company (anonymous id only)."""
    return CompanyService.get_company_by_id(db, company_id)
