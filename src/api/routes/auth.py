import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.app.services.password_reset_notifier import IPasswordResetNotifier
from src.app.use_cases.auth import (
    ChangePasswordResponse,
    PasswordResetService,
    RequestResetResponse,
)
from src.depends import get_password_reset_service, get_reset_notifier, get_session_context
from src.domain.errors import (
    ExternalSyncError,
    NoSessionError,
    PasswordResetError,
    UnexpectedError,
    UserNotFoundError,
)
from src.domain.value_objects import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def raise_api_error(error: PasswordResetError):
    """Map a password reset error onto the HTTP error it is reported as"""
    if isinstance(error, UnexpectedError):
        raise ServerError(error)
    elif isinstance(error, ExternalSyncError):
        raise ServerError(error, status_code=status.HTTP_502_BAD_GATEWAY)
    elif isinstance(error, NoSessionError):
        raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
    elif isinstance(error, UserNotFoundError):
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)


class RequestPasswordResetRequest(BaseModel):
    """
    Request password reset HTTP request payload

    Emptiness is checked by the use case so it is reported with its own code.
    """

    user_or_email: Optional[str] = Field(None, description="Username or email address")


@router.post(
    "/request-password-reset",
    status_code=status.HTTP_200_OK,
    response_model=RequestResetResponse,
)
async def request_password_reset(
    request: RequestPasswordResetRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
    notifier: Optional[IPasswordResetNotifier] = Depends(get_reset_notifier),
):
    """
    Request Password Reset

    Issues a reset token (valid 24 hours) for the user matching the username
    or email, replacing any earlier pending token. When a notifier is
    configured the reset link is also emailed to the user.

    Raises:
        - 400 Bad Request: No username or email given
        - 404 Not Found: User does not exist
        - 500 Internal Server Error: Server error
    """
    try:
        result = await service.request_reset(request.user_or_email)
    except PasswordResetError as error:
        raise_api_error(error)

    if notifier is not None:
        try:
            await notifier.send_reset_link(result.email, result.token)
        except httpx.HTTPError as exc:
            logger.error(f"Reset link delivery failed: {exc}")
            raise ServerError(UnexpectedError("Reset link could not be sent"))

    return result


class ChangePasswordRequest(BaseModel):
    """
    Change password HTTP request payload

    Password rules are enforced by the use case, not here.
    """

    token: str = Field(..., description="Password reset token")
    new_password: str = Field(..., description="New password")


@router.post(
    "/change-password",
    status_code=status.HTTP_200_OK,
    response_model=ChangePasswordResponse,
)
async def change_password(
    request: ChangePasswordRequest,
    session: Optional[SessionContext] = Depends(get_session_context),
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Change Password

    Sets a new password using a pending reset token. The Mattermost
    password is changed first; the local password only changes if that
    succeeds. The token cannot be used again afterwards.

    Raises:
        - 400 Bad Request: Malformed or invalid token, weak password
        - 401 Unauthorized: No active session
        - 404 Not Found: User does not exist
        - 502 Bad Gateway: Mattermost did not set password
        - 500 Internal Server Error: Server error
    """
    try:
        return await service.change_password(request.token, request.new_password, session)
    except PasswordResetError as error:
        raise_api_error(error)
