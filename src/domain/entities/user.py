"""
User Entity

Back-office account allowed to sign in to the access-control panels.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now

from .enums import UserRole


class User(SQLModel, table=True):
    """
    User entity - a person who can sign in.

    Business Rules:
    - Email must be unique across all users
    - Password stored as bcrypt hash (cost factor 12)
    - Only admins may read the session audit log and security metrics
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str = Field(default="", max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    role: UserRole = Field(default=UserRole.operator)

    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime)
    )
