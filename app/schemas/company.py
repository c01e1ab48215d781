"""Pydantic schemas for company management."""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class ContactInfo(BaseModel):
    """Real contact details, only exposed after disclosure."""
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    class Config:
        from_attributes = True


class CompanyCreate(BaseModel):
    """Schema for registering the user's company during onboarding."""
    company_name: str = Field(..., min_length=1, max_length=255, description="Company name")
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)


class CompanyUpdate(BaseModel):
    """Schema for updating the company's own contact details."""
    company_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)


class CompanyResponse(BaseModel):
    """Schema for the owner's view of their company."""
    id: str
    anonymous_id: str
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CompanyPublic(BaseModel):
    """What other companies see before disclosure."""
    id: str
    anonymous_id: str

    class Config:
        from_attributes = True
