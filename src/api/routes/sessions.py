from datetime import datetime, timedelta

from fastapi import APIRouter, status
from pydantic import BaseModel

from config import ApplicationConfig
from src.api.utils.jwt import generate_session_token

router = APIRouter(prefix="/sessions", tags=["Sessions"])


class SessionResponse(BaseModel):
    """Response for session creation"""

    session_token: str
    expires_at: datetime


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SessionResponse,
)
async def create_session():
    """
    Create Session

    Issues a short-lived session token. Changing a password requires one,
    sent as a Bearer token.
    """
    token, expires_at = generate_session_token(
        timedelta(minutes=ApplicationConfig.SESSION_TTL_MINUTES)
    )
    return SessionResponse(session_token=token, expires_at=expires_at)
