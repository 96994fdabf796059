"""
Defines a base model for SQLAlchemy ORM with common attributes.

This module provides the declarative base shared by every entity, the
abstract ``BaseModel`` carrying the integer identity and server-managed
timestamps, and ``AuditMixin`` for entities that record which user created
and last updated them.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()


def utcnow() -> datetime:
    """Return the current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


class BaseModel(Base):
    """
    Base model class for database entities.

    This abstract base model class serves as the foundation for all database
    entities, providing standard fields for consistent identification and
    tracking of record creation and modification timestamps. Timestamps are
    always set by the server and identity never changes once assigned.

    :ivar id: Unique identifier for the record.
    :type id: int
    :ivar created_at: Timestamp representing when the record was created.
    :type created_at: datetime
    :ivar updated_at: Timestamp representing when the record was last updated.
    :type updated_at: datetime
    """
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class AuditMixin:
    """
    Adds optional creator/updater references to a model.

    The columns are filled from an explicit write context by the repository,
    never from ambient request state.
    """

    @declared_attr
    def created_by(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    @declared_attr
    def updated_by(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


SERVER_MANAGED_FIELDS = frozenset({"id", "created_at", "updated_at", "created_by", "updated_by"})
