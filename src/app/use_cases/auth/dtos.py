"""
Password Reset DTOs (Data Transfer Objects)

Response classes returned by PasswordResetService.
"""

from pydantic import BaseModel, Field


class RequestResetResponse(BaseModel):
    """Response for the request reset operation"""

    success: bool
    token: str
    # Recipient for the reset link; kept out of serialized responses
    email: str = Field(default="", exclude=True)


class ChangePasswordResponse(BaseModel):
    """Response for the change password operation"""

    success: bool
