"""SQLAlchemy models for the resource marketplace."""

from sqlalchemy import (
    Column, String, Integer, Float, JSON, Date, DateTime, Text, ForeignKey, Boolean, Index
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

Base = declarative_base()


PRICE_TYPES = ('fixed', 'hourly', 'negotiable')


class User(Base):
    """User mirrored from the identity provider (Clerk)"""
    __tablename__ = 'users'

    id = Column(String, primary_key=True)  # Clerk user ID
    email = Column(String, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    profile_image_url = Column(String)
    clerk_metadata = Column(JSON)

    # Null until the user has registered a company
    company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'), unique=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime)
    last_sign_in_at = Column(DateTime)

    company = relationship("Company", back_populates="user")


class Company(Base):
    """Marketplace participant. Real contact fields stay private until disclosure."""
    __tablename__ = 'companies'

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    anonymous_id = Column(String, nullable=False, unique=True)

    # Real contact info
    company_name = Column(String)
    email = Column(String)
    phone = Column(String)
    address = Column(String)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="company", uselist=False)
    resources = relationship(
        "Resource",
        back_populates="company",
        foreign_keys="Resource.company_id",
        passive_deletes=True,
    )

    @property
    def has_contact_info(self) -> bool:
        return bool(self.company_name)


class Resource(Base):
    """A time-bounded capacity offer"""
    __tablename__ = 'resources'

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)

    competence = Column(String, nullable=False)  # Electrician, Plumber, ...
    amount = Column(Integer, nullable=False, default=1)
    price = Column(Float)
    price_type = Column(String, nullable=False, default='fixed')  # fixed, hourly, negotiable
    period_from = Column(Date, nullable=False)
    period_to = Column(Date, nullable=False)
    comments = Column(Text)

    # Set once by ResourceService.take_resource, never reversed
    is_taken = Column(Boolean, nullable=False, default=False)
    accepted_by_company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'))
    taken_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    company = relationship("Company", back_populates="resources", foreign_keys=[company_id])
    accepted_by = relationship("Company", foreign_keys=[accepted_by_company_id])

    __table_args__ = (
        Index('idx_resource_company', 'company_id'),
        Index('idx_resource_taken', 'is_taken'),
    )


class Message(Base):
    """A message in a thread. Root messages have thread_id = NULL."""
    __tablename__ = 'messages'

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    thread_id = Column(String, index=True)

    # Nullable so that deleting a company/resource leaves a dangling row
    from_company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'))
    to_company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'))
    resource_id = Column(String, ForeignKey('resources.id', ondelete='SET NULL'))

    subject = Column(String, nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    read_at = Column(DateTime)

    # Relationships
    from_company = relationship("Company", foreign_keys=[from_company_id])
    to_company = relationship("Company", foreign_keys=[to_company_id])
    resource = relationship("Resource")

    __table_args__ = (
        Index('idx_message_from', 'from_company_id', 'created_at'),
        Index('idx_message_to', 'to_company_id', 'created_at'),
    )

    @property
    def thread_key(self) -> str:
        return self.thread_id or self.id

    @property
    def is_resolvable(self) -> bool:
        return (
            self.from_company is not None
            and self.to_company is not None
            and self.resource is not None
        )


class ContactDisclosure(Base):
    """Mutual agreement to reveal contact info for one thread"""
    __tablename__ = 'thread_contact_sharing'

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    thread_id = Column(String, nullable=False, unique=True)
    # Never retracted; a deleted party leaves NULL behind
    from_company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'))
    to_company_id = Column(String, ForeignKey('companies.id', ondelete='SET NULL'))
    created_at = Column(DateTime, default=datetime.utcnow)

    def involves(self, company_id: str) -> bool:
        return company_id in (self.from_company_id, self.to_company_id)

    def other_party(self, company_id: str) -> str:
        if self.from_company_id == company_id:
            return self.to_company_id
        return self.from_company_id
