"""Pydantic schemas for request/response validation."""

from .user import UserResponse, UserCreate, UserUpdate
from .health import HealthResponse
from .company import CompanyCreate, CompanyUpdate, CompanyResponse, CompanyPublic, ContactInfo
from .resource import (
    ResourceCreate, ResourceResponse, ResourceListResponse, PendingRequest,
    PendingRequestsResponse, ResourceContactResponse, TakeResourceResponse
)
from .message import (
    InquiryCreate, ReplyCreate, MessageResponse, ThreadListResponse, ThreadResponse, DisclosureResponse
)

__all__ = [
    "UserResponse",
    "UserCreate",
    "UserUpdate",
    "HealthResponse",
    "CompanyCreate",
    "CompanyUpdate",
    "CompanyResponse",
    "CompanyPublic",
    "ContactInfo",
    "ResourceCreate",
    "ResourceResponse",
    "ResourceListResponse",
    "PendingRequest",
    "PendingRequestsResponse",
    "ResourceContactResponse",
    "TakeResourceResponse",
    "InquiryCreate",
    "ReplyCreate",
    "MessageResponse",
    "ThreadListResponse",
    "ThreadResponse",
    "DisclosureResponse",
]
