"""
Password Reset Service

Issues reset tokens and changes passwords with them, keeping the external
chat account in step with the local credential.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

import bcrypt

from src.app.services.chat_credential_sync import IChatCredentialSync
from src.app.services.secret_generator import SecretGenerator
from src.app.services.token_codec import Base64TokenCodec, TokenCodec
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import User
from src.domain.errors import (
    ExternalSyncError,
    InvalidTokenError,
    MissingIdentifierError,
    NoSessionError,
    PasswordResetError,
    UnexpectedError,
    UserNotFoundError,
)
from src.domain.value_objects import PasswordPolicy, SessionContext
from .dtos import ChangePasswordResponse, RequestResetResponse

logger = logging.getLogger(__name__)

ErrorSink = Callable[[BaseException], None]


def log_error(error: BaseException) -> None:
    """Default error sink"""
    logger.error("Password reset failed unexpectedly", exc_info=error)


@dataclass(frozen=True)
class PasswordResetSettings:
    token_ttl: timedelta = timedelta(hours=24)
    password_policy: PasswordPolicy = field(default_factory=PasswordPolicy)
    bcrypt_rounds: int = 12


class PasswordResetService:
    """
    Password reset workflow.

    Business Rules:
    - Identifier containing "@" is an email, anything else is a username
    - One pending token per user; a new request overwrites the old one
    - Token expires after settings.token_ttl (24 hours by default)
    - Token is single-use: cleared after a successful change
    - Mismatched and expired tokens fail the same way (InvalidTokenError)
    - Password policy is checked before the token is compared
    - Chat password is set first; the local record changes only if that succeeds
    - Unexpected collaborator errors go to the error sink and are re-raised
    """

    def __init__(
        self,
        uow: UnitOfWork,
        chat_sync: IChatCredentialSync,
        settings: PasswordResetSettings = PasswordResetSettings(),
        token_codec: Optional[TokenCodec] = None,
        secret_generator: Optional[SecretGenerator] = None,
        error_sink: ErrorSink = log_error,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.chat_sync = chat_sync
        self.settings = settings
        self.token_codec = token_codec or Base64TokenCodec()
        self.secret_generator = secret_generator or SecretGenerator()
        self.error_sink = error_sink
        self.clock = clock

    async def request_reset(self, user_or_email: Optional[str]) -> RequestResetResponse:
        """
        Issue a new reset token for a user.

        Args:
            user_or_email: Username, or email address if it contains "@"

        Returns:
            RequestResetResponse carrying the encoded token

        Raises:
            MissingIdentifierError: Identifier is empty
            UserNotFoundError: No user matches the identifier
            UnexpectedError: Store failure (reported to the error sink)
        """
        identifier = (user_or_email or "").strip()
        if not identifier:
            raise MissingIdentifierError()

        try:
            async with self.uow:
                user = await self._find_by_identifier(identifier)
                if user is None:
                    raise UserNotFoundError()

                token = self.token_codec.encode(user.id, self.secret_generator.generate())
                await self.uow.users.update(
                    user.id,
                    {
                        "pending_reset_token": token,
                        "reset_expires_at": self.clock() + self.settings.token_ttl,
                    },
                )
                await self.uow.commit()
        except PasswordResetError:
            raise
        except Exception as exc:
            self.error_sink(exc)
            raise UnexpectedError() from exc

        logger.info("Password reset requested for user %s", user.id)
        return RequestResetResponse(success=True, token=token, email=user.email)

    async def change_password(
        self,
        token: str,
        new_password: str,
        session: Optional[SessionContext],
    ) -> ChangePasswordResponse:
        """
        Change a user's password with a pending reset token.

        Args:
            token: Encoded token issued by request_reset
            new_password: Plain text password to set
            session: Caller session; must be present and active

        Returns:
            ChangePasswordResponse on success

        Raises:
            NoSessionError: No active session (checked before anything else)
            MalformedTokenError: Token is not a valid encoding
            UserNotFoundError: Token names a user that does not exist
            WeakPasswordError: Password breaks the policy
            InvalidTokenError: Token is not the pending one, or has expired
            ExternalSyncError: Chat system did not accept the password
            UnexpectedError: Store failure (reported to the error sink)
        """
        now = self.clock()
        if session is None or not session.is_active(now):
            raise NoSessionError()

        reset_token = self.token_codec.decode(token)

        try:
            async with self.uow:
                user = await self.uow.users.get_by_id(reset_token.user_id)
                if user is None:
                    raise UserNotFoundError()

                self.settings.password_policy.validate(new_password)

                if not self._is_pending(user, token, now):
                    raise InvalidTokenError()

                password_hash = bcrypt.hashpw(
                    new_password.encode(), bcrypt.gensalt(self.settings.bcrypt_rounds)
                )

                # Hashed before the chat sync; only the store write follows it
                await self._sync_chat_password(user, new_password)

                await self.uow.users.update(
                    user.id,
                    {
                        "password_hash": password_hash.decode(),
                        "pending_reset_token": None,
                        "reset_expires_at": None,
                    },
                )
                await self.uow.commit()
        except PasswordResetError:
            raise
        except Exception as exc:
            self.error_sink(exc)
            raise UnexpectedError() from exc

        logger.info("Password changed for user %s", reset_token.user_id)
        return ChangePasswordResponse(success=True)

    async def _find_by_identifier(self, identifier: str) -> Optional[User]:
        if "@" in identifier:
            return await self.uow.users.get_by_email(identifier)
        return await self.uow.users.get_by_username(identifier)

    @staticmethod
    def _is_pending(user: User, token: str, now: datetime) -> bool:
        if user.pending_reset_token is None or user.reset_expires_at is None:
            return False
        return user.pending_reset_token == token and user.reset_expires_at > now

    async def _sync_chat_password(self, user: User, new_password: str) -> None:
        # Single attempt, no retry
        try:
            synced = await self.chat_sync.set_password(user, new_password)
        except Exception as exc:
            logger.warning("Chat password sync raised for user %s: %s", user.id, exc)
            raise ExternalSyncError() from exc

        if not synced:
            logger.warning("Chat password sync rejected for user %s", user.id)
            raise ExternalSyncError()
