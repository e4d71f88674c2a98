"""
Password Reset Value Objects

Transient values that are never persisted as their own rows.
"""

import string
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.domain.errors import WeakPasswordError


@dataclass(frozen=True)
class ResetToken:
    """Decoded reset token: the user it was issued for and its secret."""

    user_id: int
    secret: str


@dataclass(frozen=True)
class SessionContext:
    """Caller session presented to change_password."""

    session_id: str
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now


@dataclass(frozen=True)
class PasswordPolicy:
    """
    Password composition rules.

    Length limits are always enforced; the composition rules are opt-in.
    """

    min_length: int = 8
    max_bytes: int = 72  # bcrypt input limit
    require_digit: bool = False
    require_uppercase: bool = False
    require_symbol: bool = False

    def violations(self, password: Optional[str]) -> list[str]:
        if not password:
            return ["empty"]

        problems = []
        if len(password) < self.min_length:
            problems.append("min_length")
        if len(password.encode()) > self.max_bytes:
            problems.append("max_bytes")
        if self.require_digit and not any(c.isdigit() for c in password):
            problems.append("digit")
        if self.require_uppercase and not any(c.isupper() for c in password):
            problems.append("uppercase")
        if self.require_symbol and not any(c in string.punctuation for c in password):
            problems.append("symbol")
        return problems

    def validate(self, password: Optional[str]) -> None:
        """Raise WeakPasswordError if the password breaks any rule."""
        if self.violations(password):
            raise WeakPasswordError()
