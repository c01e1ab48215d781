"""Service layer for business logic."""

from .user_service import UserService
from .company_service import CompanyService
from .resource_service import ResourceService
from .thread_service import ThreadService
from .change_feed_service import ChangeFeedService

__all__ = ["UserService", "CompanyService", "ResourceService", "ThreadService", "ChangeFeedService"]
