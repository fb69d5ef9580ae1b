"""
Base model class for all SQLAlchemy models.

WHY: Centralizing common model functionality (timestamps, UUID primary key)
in a base class keeps every table consistent.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with improved type hints and async support.
    """

    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PrimaryKeyMixin:
    """
    Mixin to add a UUID primary key to models.

    WHY: Ids are handed to the browser and to email links, so they should
    not be guessable or reveal record counts.
    """

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
