from datetime import UTC, datetime, timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.mailgun_notifier import MailgunResetNotifier
from src.adapter.services.mattermost_credential_sync import MattermostCredentialSync
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.chat_credential_sync import IChatCredentialSync
from src.app.services.password_reset_notifier import IPasswordResetNotifier
from src.app.services.secret_generator import SecretGenerator
from src.app.services.token_codec import Base64TokenCodec, SignedTokenCodec, TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import PasswordResetService, PasswordResetSettings
from src.domain.value_objects import PasswordPolicy, SessionContext

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_chat_credential_sync() -> IChatCredentialSync:
    return MattermostCredentialSync(
        base_url=ApplicationConfig.MATTERMOST_URL,
        access_token=ApplicationConfig.MATTERMOST_ACCESS_TOKEN,
        timeout=ApplicationConfig.MATTERMOST_TIMEOUT,
    )


def get_reset_notifier() -> Optional[IPasswordResetNotifier]:
    """Mailgun notifier, or None when Mailgun is not configured"""
    if not ApplicationConfig.MAILGUN_API_KEY:
        return None

    return MailgunResetNotifier(
        api_key=ApplicationConfig.MAILGUN_API_KEY,
        domain=ApplicationConfig.MAILGUN_DOMAIN,
        sender=ApplicationConfig.MAILGUN_SENDER,
        reset_link_url=ApplicationConfig.RESET_LINK_URL,
    )


def get_token_codec() -> TokenCodec:
    if ApplicationConfig.RESET_TOKEN_SECRET:
        return SignedTokenCodec(ApplicationConfig.RESET_TOKEN_SECRET)
    return Base64TokenCodec()


def get_password_reset_settings() -> PasswordResetSettings:
    return PasswordResetSettings(
        token_ttl=timedelta(hours=ApplicationConfig.RESET_TOKEN_TTL_HOURS),
        password_policy=PasswordPolicy(
            min_length=ApplicationConfig.PASSWORD_MIN_LENGTH,
            require_digit=ApplicationConfig.PASSWORD_REQUIRE_DIGIT,
            require_uppercase=ApplicationConfig.PASSWORD_REQUIRE_UPPERCASE,
            require_symbol=ApplicationConfig.PASSWORD_REQUIRE_SYMBOL,
        ),
        bcrypt_rounds=ApplicationConfig.BCRYPT_ROUNDS,
    )


def get_password_reset_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    chat_sync: IChatCredentialSync = Depends(get_chat_credential_sync),
    settings: PasswordResetSettings = Depends(get_password_reset_settings),
    token_codec: TokenCodec = Depends(get_token_codec),
) -> PasswordResetService:
    return PasswordResetService(
        uow,
        chat_sync,
        settings=settings,
        token_codec=token_codec,
        secret_generator=SecretGenerator(ApplicationConfig.RESET_SECRET_BYTES),
    )


async def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[SessionContext]:
    """
    Dependency to extract the caller session from the Authorization header.

    Args:
        credentials: Bearer session token, if any

    Returns:
        SessionContext, or None when the header is missing or the token is
        invalid or expired (the use case decides how to reject it)
    """
    if credentials is None:
        return None

    payload = verify_jwt(credentials.credentials)
    if payload is None or "sid" not in payload or "exp" not in payload:
        return None

    return SessionContext(
        session_id=payload["sid"],
        expires_at=datetime.fromtimestamp(payload["exp"], UTC).replace(tzinfo=None),
    )
