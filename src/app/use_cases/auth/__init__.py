"""
Authentication Use Cases

Password reset business logic.
"""

from .password_reset_service import (
    PasswordResetService,
    PasswordResetSettings,
    log_error,
)
from .dtos import ChangePasswordResponse, RequestResetResponse

__all__ = [
    # Services
    "PasswordResetService",
    "PasswordResetSettings",
    "log_error",
    # DTOs - Responses
    "RequestResetResponse",
    "ChangePasswordResponse",
]
