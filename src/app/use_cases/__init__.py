"""
Use Cases

Organized into domain folders:
- auth/: Password reset flows
"""

from .auth import (
    PasswordResetService,
    PasswordResetSettings,
)

__all__ = [
    # Auth
    "PasswordResetService",
    "PasswordResetSettings",
]
