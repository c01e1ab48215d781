"""Database module for the resource marketplace."""

from .connection import DatabaseManager, build_engine
from .models import Base, User, Company, Resource, Message, ContactDisclosure

__all__ = [
    'DatabaseManager',
    'build_engine',
    'Base',
    'User',
    'Company',
    'Resource',
    'Message',
    'ContactDisclosure'
]
