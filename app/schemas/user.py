"""Schemas for users mirrored from Clerk."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr


def primary_email(clerk_data: dict) -> Optional[str]:
    """First address in a Clerk user payload's email_addresses list."""
    addresses = clerk_data.get("email_addresses") or [{}]
    return addresses[0].get("email_address")


class UserCreate(BaseModel):
    """A user as announced by the user.created webhook."""
    id: str  # Clerk user ID
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    @classmethod
    def from_clerk(cls, data: dict) -> "UserCreate":
        return cls(
            id=data.get("id"),
            email=primary_email(data),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            profile_image_url=data.get("profile_image_url"),
        )


class UserUpdate(BaseModel):
    """Changed profile fields from the user.updated webhook."""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    @classmethod
    def from_clerk(cls, data: dict) -> "UserUpdate":
        return cls(
            email=primary_email(data),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            profile_image_url=data.get("profile_image_url"),
        )


class UserResponse(BaseModel):
    """A mirrored user and the company they registered, if any."""
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_id: Optional[str] = None  # Null until onboarding is done
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    class Config:
        from_attributes = True
