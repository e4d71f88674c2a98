"""
User Entity

Account whose credentials can be reset.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class User(SQLModel, table=True):
    """
    User entity - credential record of an account.

    Business Rules:
    - Username and email are unique lookup keys
    - Password stored as bcrypt hash
    - At most one pending reset token; a new request overwrites the old one
    - pending_reset_token is honored only while reset_expires_at is in the future
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=64)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    # Password reset (encoded token, never the raw secret)
    pending_reset_token: Optional[str] = Field(default=None, max_length=512)
    reset_expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_reset_expires_at", "reset_expires_at"),)
